"""
EEG signal preprocessing pipeline

This module handles sample-by-sample filtering and artifact clipping of raw EEG.
Filters are causal IIR recurrences with per-channel state so each sample can be
cleaned as soon as it arrives.
"""

import logging
from typing import Optional, Sequence
import numpy as np

from ..core.data_types import Sample, FilteredSample
from ..core.config import (BANDPASS_ORDER, BANDPASS_B, BANDPASS_A, NOTCH_B, NOTCH_A,
                           ARTIFACT_CLIP_UV, FALLBACK_ATTENUATION)


def clip_artifacts(values: np.ndarray, limit: float = ARTIFACT_CLIP_UV) -> np.ndarray:
    """Clip values whose magnitude exceeds limit to ±limit, preserving sign"""
    return np.where(np.abs(values) > limit, np.sign(values) * limit, values)


class IIRFilter:
    """
    Direct-form IIR filter applied independently to every channel

    Each channel keeps an input history x and output history y, newest first.
    For every new sample the histories shift by one and
        y[0] = sum(b[i] * x[i]) - sum(a[i] * y[i] for i >= 1)
    """

    def __init__(self, b: Sequence[float], a: Sequence[float], n_channels: int, taps: int):
        self.b = np.asarray(b, dtype=np.float64)
        self.a = np.asarray(a, dtype=np.float64)
        self.n_channels = int(n_channels)
        self.taps = int(taps)
        self.x_history = np.zeros((self.n_channels, self.taps))
        self.y_history = np.zeros((self.n_channels, self.taps))

        # Coefficients beyond the history length never contribute
        self._nb = min(len(self.b), self.taps)
        self._na = min(len(self.a), self.taps)

    def reset(self):
        """Zero the filter history"""
        self.x_history.fill(0.0)
        self.y_history.fill(0.0)

    def process(self, values: np.ndarray) -> np.ndarray:
        """
        Filter one multi-channel sample

        Args:
            values: One value per channel (n,)

        Returns:
            np.ndarray: Filtered values; channels beyond n_channels pass through
        """
        values = np.asarray(values, dtype=np.float64)
        output = values.copy()
        n = min(len(values), self.n_channels)
        if n == 0:
            return output

        x = self.x_history[:n]
        y = self.y_history[:n]

        # Shift history, oldest entry drops off
        x[:, 1:] = x[:, :-1]
        y[:, 1:] = y[:, :-1]
        x[:, 0] = values[:n]

        result = x[:, :self._nb] @ self.b[:self._nb]
        if self._na > 1:
            result -= y[:, 1:self._na] @ self.a[1:self._na]

        y[:, 0] = result
        output[:n] = result
        return output


class BandpassFilter(IIRFilter):
    """4th order 1-40 Hz band-pass with fixed coefficients"""

    def __init__(self, n_channels: int, order: int = BANDPASS_ORDER):
        super().__init__(BANDPASS_B, BANDPASS_A, n_channels, taps=order + 1)
        self.order = order


class NotchFilter(IIRFilter):
    """50 Hz line-noise notch (Q=30) with fixed coefficients"""

    def __init__(self, n_channels: int):
        super().__init__(NOTCH_B, NOTCH_A, n_channels, taps=3)


class FilterChain:
    """
    Real-time filter chain: band-pass -> notch -> artifact clipping

    The chain is sized for one channel count. Until initialize() is called
    (or after teardown()) it falls back to clipping plus a fixed attenuation.
    """

    def __init__(self, n_channels: Optional[int] = None, clip_limit: float = ARTIFACT_CLIP_UV,
                 fallback_gain: float = FALLBACK_ATTENUATION):
        self.clip_limit = clip_limit
        self.fallback_gain = fallback_gain
        self.bandpass: Optional[BandpassFilter] = None
        self.notch: Optional[NotchFilter] = None
        if n_channels is not None:
            self.initialize(n_channels)

    @property
    def is_initialized(self) -> bool:
        return self.bandpass is not None and self.notch is not None

    @property
    def n_channels(self) -> Optional[int]:
        return self.bandpass.n_channels if self.bandpass is not None else None

    def initialize(self, n_channels: int):
        """Allocate fresh zeroed filter state for n_channels"""
        self.bandpass = BandpassFilter(n_channels)
        self.notch = NotchFilter(n_channels)
        logging.info(f"Filters initialized for {n_channels} channels: "
                     f"BP order {self.bandpass.order}, notch 3-tap")

    def teardown(self):
        """Drop filter state; process() uses the fallback path until re-initialized"""
        self.bandpass = None
        self.notch = None

    def filter_values(self, values: np.ndarray) -> np.ndarray:
        """Filter one multi-channel value vector"""
        values = np.asarray(values, dtype=np.float64)
        if not self.is_initialized:
            return clip_artifacts(values, self.clip_limit) * self.fallback_gain

        bandpassed = self.bandpass.process(values)
        notched = self.notch.process(bandpassed)
        return clip_artifacts(notched, self.clip_limit)

    def process(self, sample: Sample) -> FilteredSample:
        """
        Apply the chain to a raw sample

        Args:
            sample: Raw EEG sample

        Returns:
            FilteredSample: Filtered sample with the same timestamp
        """
        return FilteredSample(timestamp=sample.timestamp,
                              channels=self.filter_values(sample.channels))
