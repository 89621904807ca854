"""
EEG data acquisition sources

This module provides the LSL stream connection manager and a synthetic EEG
generator used whenever no real stream is bound.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple
import numpy as np

from ..core.config import (DEFAULT_CHANNEL_COUNT, RESOLVE_TIMEOUT_SEC, PULL_RESOLVE_TIMEOUT_SEC,
                           PULL_TIMEOUT_SEC, INLET_MAX_BUFLEN, INLET_MAX_CHUNKLEN, SYNTH_NOISE_UV)
from ..core.data_types import Sample, StreamCandidate, StreamDescriptor, ConnectionState
from ..core.errors import DiscoveryError, MatchError, InletError
from ..utils.channel_finder import identify_device, channel_names_for, device_info, match_alias

# Optional import with fallback
try:
    import pylsl
    LSL_AVAILABLE = True
except (ImportError, RuntimeError):
    LSL_AVAILABLE = False
    logging.warning("pylsl not available - only synthetic data can be used")


class StreamBackend(ABC):
    """
    Blocking access to advertised streams

    All methods may block up to their timeout and must be called off the
    real-time tick path.
    """

    @abstractmethod
    def discover(self, timeout: float) -> List[StreamCandidate]:
        pass

    def resolve(self, name: str, timeout: float) -> Optional[StreamCandidate]:
        """Find a stream by exact name"""
        for candidate in self.discover(timeout):
            if candidate.name == name:
                return candidate
        return None

    @abstractmethod
    def open(self, candidate: StreamCandidate) -> Any:
        pass

    @abstractmethod
    def pull(self, inlet: Any, timeout: float) -> Tuple[Optional[Sequence[float]], Optional[float]]:
        pass

    def close(self, inlet: Any):
        pass


class PylslBackend(StreamBackend):
    """StreamBackend over the Lab Streaming Layer (pylsl)"""

    def __init__(self, max_buflen: int = INLET_MAX_BUFLEN, max_chunklen: int = INLET_MAX_CHUNKLEN):
        self.max_buflen = max_buflen
        self.max_chunklen = max_chunklen

    @staticmethod
    def _candidate(info) -> StreamCandidate:
        return StreamCandidate(
            name=info.name(),
            stream_type=info.type(),
            source_id=info.source_id(),
            channel_count=info.channel_count(),
            sample_rate=info.nominal_srate(),
            hostname=info.hostname(),
            handle=info,
        )

    def discover(self, timeout: float) -> List[StreamCandidate]:
        if not LSL_AVAILABLE:
            raise DiscoveryError("pylsl not available. Install with: pip install pylsl")
        return [self._candidate(info) for info in pylsl.resolve_streams(wait_time=timeout)]

    def resolve(self, name: str, timeout: float) -> Optional[StreamCandidate]:
        if not LSL_AVAILABLE:
            return None
        streams = pylsl.resolve_byprop("name", name, 1, timeout)
        return self._candidate(streams[0]) if streams else None

    def open(self, candidate: StreamCandidate) -> Any:
        return pylsl.StreamInlet(candidate.handle, max_buflen=self.max_buflen,
                                 max_chunklen=self.max_chunklen, recover=True)

    def pull(self, inlet: Any, timeout: float) -> Tuple[Optional[Sequence[float]], Optional[float]]:
        return inlet.pull_sample(timeout=timeout)

    def close(self, inlet: Any):
        inlet.close_stream()


def match_stream(target: str, candidates: Sequence[StreamCandidate]) -> Optional[StreamCandidate]:
    """
    Pick the candidate that best matches target

    Rules in order of preference, each tried over all candidates before the next:
    exact name, target contained in source id, target contained in name
    (both case-insensitive), then vendor aliases.
    """
    needle = target.lower()
    rules = (
        lambda c: c.name == target,
        lambda c: bool(needle) and needle in c.source_id.lower(),
        lambda c: bool(needle) and needle in c.name.lower(),
        lambda c: match_alias(target, c),
    )
    for rule in rules:
        for candidate in candidates:
            if rule(candidate):
                return candidate
    return None


def describe_stream(candidate: StreamCandidate) -> StreamDescriptor:
    """Build a StreamDescriptor from advertised metadata and device identification"""
    family = identify_device(candidate.source_id, candidate.name)
    manufacturer, device_model = device_info(family)
    channel_count = int(candidate.channel_count)
    metadata = (f"Type: {candidate.stream_type} | Source: {candidate.source_id} | "
                f"Channels: {channel_count} | Rate: {candidate.sample_rate:.1f} Hz | "
                f"Manufacturer: {manufacturer} | Model: {device_model}")

    return StreamDescriptor(
        name=candidate.name,
        channel_count=channel_count,
        sample_rate=float(candidate.sample_rate),
        is_connected=True,
        metadata=metadata,
        stream_type=candidate.stream_type,
        source_id=candidate.source_id,
        channel_names=channel_names_for(family, channel_count),
        manufacturer=manufacturer,
        device_model=device_model,
    )


def fit_channels(values: Optional[Sequence[float]], channel_count: int) -> np.ndarray:
    """Truncate or zero-fill values to exactly channel_count entries"""
    channels = np.zeros(channel_count)
    if values is not None:
        values = np.asarray(values, dtype=np.float64).reshape(-1)[:channel_count]
        channels[:len(values)] = values
    return channels


class LSLSource:
    """
    Connection manager for a single LSL EEG stream

    Discovery, matching and inlet handling go through a StreamBackend. The
    manager keeps the ConnectionState; callers that share it across threads
    are responsible for serializing bind()/disconnect().
    """

    def __init__(self, backend: Optional[StreamBackend] = None,
                 resolve_timeout: float = RESOLVE_TIMEOUT_SEC,
                 pull_timeout: float = PULL_TIMEOUT_SEC):
        self.backend = backend if backend is not None else PylslBackend()
        self.resolve_timeout = resolve_timeout
        self.pull_timeout = pull_timeout
        self.state = ConnectionState()

    @property
    def is_connected(self) -> bool:
        return self.state.is_real

    @property
    def channel_count(self) -> int:
        return self.state.channel_count

    def current_descriptor(self) -> Optional[StreamDescriptor]:
        return self.state.descriptor

    def list_streams(self, timeout: Optional[float] = None) -> List[StreamCandidate]:
        """Discover advertised streams without connecting"""
        timeout = self.resolve_timeout if timeout is None else timeout
        try:
            return self.backend.discover(timeout)
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(f"Failed to resolve LSL streams: {e}") from e

    def open_stream(self, target: str) -> StreamDescriptor:
        """
        Resolve, match and open a stream without touching the connection state

        Args:
            target: Requested stream name

        Returns:
            StreamDescriptor: Metadata of the matched stream

        Raises:
            DiscoveryError: No streams advertised or resolution failed
            MatchError: Streams found but none matches target
            InletError: The matched stream could not be opened
        """
        logging.info(f"Searching for LSL stream: '{target}'")
        candidates = self.list_streams()
        if not candidates:
            raise DiscoveryError(f"No LSL streams found within {self.resolve_timeout:.1f} s")

        candidate = match_stream(target, candidates)
        if candidate is None:
            raise MatchError(target, candidates)

        descriptor = describe_stream(candidate)
        logging.info(f"Matched stream '{candidate.name}': {descriptor.metadata}")
        logging.info(f"Channel names: {descriptor.channel_names}")

        try:
            inlet = self.backend.open(candidate)
        except Exception as e:
            raise InletError(f"Failed to open inlet for '{candidate.name}': {e}") from e

        try:
            values, _ = self.backend.pull(inlet, self.pull_timeout)
            if values is None:
                logging.info("Inlet open, no data yet")
            else:
                logging.debug(f"First sample: {len(values)} values")
        except Exception as e:
            logging.warning(f"Diagnostic pull failed (stream may not be ready yet): {e}")
        finally:
            self._close_quietly(inlet)

        return descriptor

    def bind(self, descriptor: StreamDescriptor):
        """Mark the connection as real and adopt the descriptor's channel count"""
        self.state.bind(descriptor)
        logging.info(f"Connected to LSL stream: {descriptor.name} ({descriptor.channel_count} channels)")

    def connect(self, target: str) -> StreamDescriptor:
        """Open and bind a stream; on failure the manager is left disconnected"""
        try:
            descriptor = self.open_stream(target)
        except Exception:
            self.state.reset()
            raise
        self.bind(descriptor)
        return descriptor

    def disconnect(self):
        """Clear the connection state and restore the default channel count"""
        was_connected = self.state.is_real
        self.state.reset()
        if was_connected:
            logging.info("Disconnected from LSL stream")

    def pull_sample(self) -> Optional[Sample]:
        """Pull one sample from the bound stream, or None if nothing is available"""
        if not self.state.is_real or self.state.bound_name is None:
            return None
        return self.fetch_sample(self.state.bound_name, self.state.channel_count)

    def fetch_sample(self, name: str, channel_count: int) -> Optional[Sample]:
        """
        Re-resolve name, open a fresh inlet and pull a single sample

        Absence of data and backend failures both yield None.
        """
        try:
            candidate = self.backend.resolve(name, PULL_RESOLVE_TIMEOUT_SEC)
            if candidate is None:
                return None
            inlet = self.backend.open(candidate)
            try:
                values, timestamp = self.backend.pull(inlet, self.pull_timeout)
            finally:
                self._close_quietly(inlet)
        except Exception as e:
            logging.debug(f"LSL pull failed: {e}")
            return None

        if values is None:
            return None
        return Sample(timestamp=timestamp or 0.0, channels=fit_channels(values, channel_count))

    def _close_quietly(self, inlet: Any):
        try:
            self.backend.close(inlet)
        except Exception as e:
            logging.debug(f"Inlet close failed: {e}")


class SampleSynthesizer:
    """
    Generate synthetic EEG samples when no real stream is available

    Each channel is a sum of alpha (10 Hz), theta (6 Hz), beta (20 Hz) and
    delta (2 Hz) sinusoids with channel-dependent amplitudes and time offsets,
    plus small uniform noise.
    """

    def __init__(self, noise_uv: float = SYNTH_NOISE_UV, seed: Optional[int] = None):
        self.noise_uv = noise_uv
        self.rng = np.random.default_rng(seed)

    def generate(self, timestamp: float, n_channels: int = DEFAULT_CHANNEL_COUNT) -> Sample:
        """
        Generate one synthetic sample

        Args:
            timestamp: Seconds since pipeline start
            n_channels: Number of channels to generate

        Returns:
            Sample: Synthetic multichannel sample
        """
        i = np.arange(n_channels, dtype=np.float64)
        t = timestamp + i * 0.3

        alpha = (15.0 + i * 2.0) * np.sin(2 * np.pi * 10.0 * t)
        theta = (12.0 + i * 1.5) * np.sin(2 * np.pi * 6.0 * t)
        beta = (6.0 + i) * np.sin(2 * np.pi * 20.0 * t)
        delta = (8.0 + i * 0.5) * np.sin(2 * np.pi * 2.0 * t)
        noise = self.rng.uniform(-self.noise_uv, self.noise_uv, n_channels)

        return Sample(timestamp=timestamp, channels=alpha + theta + beta + delta + noise)
