"""
Configuration constants for EEG Monitor

This module contains all configuration parameters that users may need to customize
for their specific streaming setup and processing requirements.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

# ============================================================================
# ACQUISITION CONFIGURATION
# ============================================================================

FS_EXPECTED = 250                 # Nominal sampling rate used for analysis (Hz)
TICK_INTERVAL_SEC = 0.004         # Scheduler period (4 ms = 250 Hz)
DEFAULT_CHANNEL_COUNT = 8         # Channel count when no stream is bound

# LSL discovery / inlet parameters
RESOLVE_TIMEOUT_SEC = 5.0         # Discovery timeout used by connect()
PULL_RESOLVE_TIMEOUT_SEC = 0.01   # Re-resolve timeout used by every pull
PULL_TIMEOUT_SEC = 0.01           # pull_sample() timeout
INLET_MAX_BUFLEN = 360            # Seconds of data buffered by an inlet
INLET_MAX_CHUNKLEN = 1            # Samples per chunk transmitted by the outlet

# Synthetic data
SYNTH_NOISE_UV = 2.0              # Uniform noise amplitude (±µV)

# ============================================================================
# FILTER CONFIGURATION
# ============================================================================

# 4th order Butterworth band-pass, 1-40 Hz designed at 250 Hz
BANDPASS_ORDER = 4
BANDPASS_B = (0.0067, 0.0, -0.0134, 0.0, 0.0067)
BANDPASS_A = (1.0, -3.1806, 3.8612, -2.1122, 0.4383)

# 50 Hz notch (Q=30) designed at 250 Hz
NOTCH_HZ = 50
NOTCH_B = (0.9565, -1.9131, 0.9565)
NOTCH_A = (1.0, -1.9131, 0.9131)

ARTIFACT_CLIP_UV = 300.0          # Filtered values are clipped to ±this
FALLBACK_ATTENUATION = 0.95       # Gain applied when filters are not initialized

# ============================================================================
# ANALYSIS CONFIGURATION
# ============================================================================

BUFFER_SIZE = 512                 # Samples per analysis window
BAND_INTERVAL_SEC = 0.25          # Band power cadence (seconds of elapsed time)
EMIT_EVERY = 1                    # Emit raw/filtered events every Nth sample

# Frequency Bands (Hz), half-open [low, high). 12-13 Hz is intentionally unassigned.
FREQ_BANDS: Dict[str, Tuple[float, float]] = {
    "delta": (0.5, 4.0),
    "theta": (4.0, 8.0),
    "alpha": (8.0, 12.0),
    "beta": (13.0, 30.0),
    "gamma": (30.0, 100.0),
}

# ============================================================================
# OUTPUT CONFIGURATION
# ============================================================================

EVENT_SAMPLE = "sample"
EVENT_FILTERED_SAMPLE = "filteredSample"
EVENT_BAND_POWERS = "bandPowers"
EVENT_CHANNELS = (EVENT_SAMPLE, EVENT_FILTERED_SAMPLE, EVENT_BAND_POWERS)

UDP_HOST = "127.0.0.1"            # Event receiver host
UDP_PORT = 5005                   # Event receiver port
STATUS_INTERVAL_SEC = 2.0         # CLI status line period


@dataclass
class PipelineConfig:
    """Runtime-tunable pipeline parameters"""
    sample_rate: float = FS_EXPECTED
    tick_interval: float = TICK_INTERVAL_SEC
    buffer_size: int = BUFFER_SIZE
    band_interval: float = BAND_INTERVAL_SEC
    emit_every: int = EMIT_EVERY
    synthesize_on_underrun: bool = False  # Fill real-mode underruns with synthetic data
    resolve_timeout: float = RESOLVE_TIMEOUT_SEC
    pull_timeout: float = PULL_TIMEOUT_SEC

    def __post_init__(self):
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.band_interval <= 0:
            raise ValueError(f"band_interval must be positive, got {self.band_interval}")
        if self.emit_every < 1:
            raise ValueError(f"emit_every must be >= 1, got {self.emit_every}")
