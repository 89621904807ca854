"""
EEG band power extraction

This module decomposes full analysis windows into delta, theta, alpha, beta
and gamma magnitudes using a plain FFT of the window.
"""

import logging
from typing import Dict, List, Tuple
import numpy as np
from scipy import fft as sp_fft

from ..core.data_types import BandPowers
from ..core.config import FREQ_BANDS, FS_EXPECTED, BUFFER_SIZE
from .buffers import RingBufferStore


class BandPowerAnalyzer:
    """
    Extract band magnitudes from filtered EEG windows

    The window is transformed without tapering (rectangular window). Every FFT
    bin i sits at frequency i * fs / window_size and adds |X_i|^2 to at most one
    half-open band; bins outside every band (e.g. 12-13 Hz) are dropped. The
    reported magnitude is the square root of each band's summed power.
    """

    def __init__(self, fs: float = FS_EXPECTED, window_size: int = BUFFER_SIZE,
                 freq_bands: Dict[str, Tuple[float, float]] = FREQ_BANDS):
        self.fs = fs
        self.window_size = window_size
        self.freq_bands = freq_bands
        self.resolution = fs / window_size
        self.freqs = np.arange(window_size) * self.resolution
        self._masks = {
            band: (self.freqs >= low) & (self.freqs < high)
            for band, (low, high) in freq_bands.items()
        }

    def compute_spectrum(self, window: np.ndarray) -> np.ndarray:
        """Power |X_i|^2 of every FFT coefficient of the window"""
        coefficients = sp_fft.fft(np.asarray(window, dtype=np.float64))
        return np.abs(coefficients) ** 2

    def band_powers(self, window: np.ndarray, timestamp: float, channel: int) -> BandPowers:
        """
        Compute band magnitudes for one channel window

        Args:
            window: Exactly window_size filtered samples, oldest first
            timestamp: Analysis timestamp
            channel: Channel index

        Returns:
            BandPowers: Magnitudes of the five bands
        """
        if len(window) != self.window_size:
            raise ValueError(f"Window must contain {self.window_size} samples, got {len(window)}")

        power = self.compute_spectrum(window)
        magnitudes = {band: float(np.sqrt(power[mask].sum())) for band, mask in self._masks.items()}
        return BandPowers(timestamp=timestamp, channel=channel, **magnitudes)

    def analyze(self, store: RingBufferStore, timestamp: float) -> List[BandPowers]:
        """
        Compute band powers for every channel with a full filtered window

        Channels whose window is not yet full are skipped for this cycle.
        """
        results = []
        for ch in range(store.n_channels):
            if not store.is_full(ch):
                continue
            results.append(self.band_powers(store.filtered_window(ch), timestamp, ch))

        logging.debug(f"Band powers computed for {len(results)}/{store.n_channels} channels")
        return results
