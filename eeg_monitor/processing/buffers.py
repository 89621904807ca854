"""
Per-channel rolling windows

Raw and filtered values are kept in independent fixed-capacity FIFO windows,
one pair per channel, advanced in lockstep.
"""

from collections import deque
from typing import List
import numpy as np

from ..core.data_types import Sample, FilteredSample
from ..core.config import BUFFER_SIZE


class RingBuffer:
    """Fixed-capacity FIFO; appending to a full buffer evicts the oldest value"""

    def __init__(self, capacity: int = BUFFER_SIZE):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._data)

    def append(self, value: float):
        self._data.append(float(value))

    def clear(self):
        self._data.clear()

    def is_full(self) -> bool:
        return len(self._data) == self.capacity

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the window, oldest first"""
        window = np.fromiter(self._data, dtype=np.float64, count=len(self._data))
        window.flags.writeable = False
        return window


class RingBufferStore:
    """
    Raw and filtered windows for every channel

    The store is sized for exactly one channel count; resize() replaces all
    windows with empty ones.
    """

    def __init__(self, n_channels: int, capacity: int = BUFFER_SIZE):
        self.capacity = capacity
        self.raw: List[RingBuffer] = []
        self.filtered: List[RingBuffer] = []
        self.resize(n_channels)

    @property
    def n_channels(self) -> int:
        return len(self.filtered)

    def resize(self, n_channels: int):
        """Discard all history and allocate empty windows for n_channels"""
        self.raw = [RingBuffer(self.capacity) for _ in range(n_channels)]
        self.filtered = [RingBuffer(self.capacity) for _ in range(n_channels)]

    def push(self, channel: int, raw_value: float, filtered_value: float):
        """Append one value pair to a channel's windows"""
        self.raw[channel].append(raw_value)
        self.filtered[channel].append(filtered_value)

    def push_sample(self, sample: Sample, filtered: FilteredSample):
        """Append a raw/filtered sample pair; values past the channel count are ignored"""
        n = min(self.n_channels, len(sample.channels), len(filtered.channels))
        for ch in range(n):
            self.push(ch, sample.channels[ch], filtered.channels[ch])

    def is_full(self, channel: int) -> bool:
        return self.filtered[channel].is_full()

    def raw_window(self, channel: int) -> np.ndarray:
        return self.raw[channel].snapshot()

    def filtered_window(self, channel: int) -> np.ndarray:
        return self.filtered[channel].snapshot()

    def lengths(self) -> List[int]:
        """Filtered window length per channel"""
        return [len(buf) for buf in self.filtered]
