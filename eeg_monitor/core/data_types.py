"""
Core data types for EEG Monitor

This module defines the fundamental data structures used throughout the system
for representing EEG samples, band powers, and stream connection state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import numpy as np

from .config import DEFAULT_CHANNEL_COUNT


def _frozen_channels(values) -> np.ndarray:
    channels = np.array(values, dtype=np.float64).reshape(-1)
    channels.flags.writeable = False
    return channels


@dataclass(frozen=True, eq=False)
class Sample:
    """One timestamped vector of raw per-channel amplitudes (µV)"""
    timestamp: float          # Seconds since pipeline start
    channels: np.ndarray      # Shape: (n_channels,)

    def __post_init__(self):
        object.__setattr__(self, "channels", _frozen_channels(self.channels))

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": float(self.timestamp), "channels": self.channels.tolist()}


@dataclass(frozen=True, eq=False)
class FilteredSample(Sample):
    """Sample after the filter chain and artifact clipping"""


@dataclass(frozen=True)
class BandPowers:
    """Band magnitudes for one channel in one analysis cycle"""
    timestamp: float
    channel: int
    delta: float = 0.0
    theta: float = 0.0
    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": float(self.timestamp),
            "channel": int(self.channel),
            "delta": float(self.delta),
            "theta": float(self.theta),
            "alpha": float(self.alpha),
            "beta": float(self.beta),
            "gamma": float(self.gamma),
        }


@dataclass(frozen=True)
class StreamCandidate:
    """A stream advertised on the network, as seen by discovery"""
    name: str
    stream_type: str = ""
    source_id: str = ""
    channel_count: int = 0
    sample_rate: float = 0.0
    hostname: str = ""
    handle: Any = field(default=None, compare=False, repr=False)  # Backend-native info object

    def describe(self) -> str:
        return f"{self.name} (type: {self.stream_type}, source: {self.source_id})"


@dataclass(frozen=True)
class StreamDescriptor:
    """Metadata of the stream the pipeline is bound to"""
    name: str
    channel_count: int
    sample_rate: float
    is_connected: bool
    metadata: str
    stream_type: str
    source_id: str
    channel_names: List[str]
    manufacturer: str
    device_model: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "channel_count": self.channel_count,
            "sample_rate": self.sample_rate,
            "is_connected": self.is_connected,
            "metadata": self.metadata,
            "stream_type": self.stream_type,
            "source_id": self.source_id,
            "channel_names": list(self.channel_names),
            "manufacturer": self.manufacturer,
            "device_model": self.device_model,
        }


@dataclass
class ConnectionState:
    """Connection bookkeeping shared by the source manager and the scheduler"""
    descriptor: Optional[StreamDescriptor] = None
    channel_count: int = DEFAULT_CHANNEL_COUNT
    is_real: bool = False
    bound_name: Optional[str] = None

    def bind(self, descriptor: StreamDescriptor):
        self.descriptor = descriptor
        self.channel_count = descriptor.channel_count
        self.is_real = True
        self.bound_name = descriptor.name

    def reset(self):
        self.descriptor = None
        self.channel_count = DEFAULT_CHANNEL_COUNT
        self.is_real = False
        self.bound_name = None
