"""
Real-time EEG pipeline

This module runs the fixed-cadence processing loop: every tick it obtains a
sample (from the bound LSL stream or the synthesizer), filters it, updates the
rolling windows, periodically computes band powers, and emits the results.
It also exposes the command surface used by the host application.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from ..core.config import PipelineConfig, EVENT_SAMPLE, EVENT_FILTERED_SAMPLE, EVENT_BAND_POWERS
from ..core.data_types import Sample, FilteredSample, BandPowers, StreamCandidate, StreamDescriptor
from ..core.errors import StreamError
from ..acquisition.sources import LSLSource, SampleSynthesizer
from ..processing.preprocessor import FilterChain
from ..processing.buffers import RingBufferStore
from ..processing.features import BandPowerAnalyzer
from ..communication.event_sender import EventSink, NullSink


class PipelineState(Enum):
    STOPPED = auto()
    RUNNING = auto()


@dataclass
class TickResult:
    """What a single tick produced"""
    sample: Sample
    filtered: FilteredSample
    band_powers: Optional[List[BandPowers]] = None  # None when no analysis ran this tick
    emitted: bool = False                           # Whether sample events were emitted


class Pipeline:
    """
    Acquisition and signal processing pipeline

    Connection state, filter state and windows are guarded by one lock. A tick
    holds it for the whole sample update; connect() holds it only to commit a
    stream that was resolved without it. Blocking LSL pulls run on a single
    worker thread and are handed to the tick loop through futures, so a slow
    source costs at most skipped ticks.
    """

    def __init__(self, sink: Optional[EventSink] = None, source: Optional[LSLSource] = None,
                 synthesizer: Optional[SampleSynthesizer] = None,
                 config: Optional[PipelineConfig] = None):
        self.config = config if config is not None else PipelineConfig()
        self.sink = sink if sink is not None else NullSink()
        self.source = source if source is not None else LSLSource(
            resolve_timeout=self.config.resolve_timeout, pull_timeout=self.config.pull_timeout)
        self.synthesizer = synthesizer if synthesizer is not None else SampleSynthesizer()

        self.filters = FilterChain()
        self.buffers = RingBufferStore(self.source.channel_count, self.config.buffer_size)
        self.analyzer = BandPowerAnalyzer(self.config.sample_rate, self.config.buffer_size)

        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lsl-pull")
        self._pending_pull: Optional[Future] = None

        self._state = PipelineState.STOPPED
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        self._sample_count = 0
        self._underruns = 0
        self._next_band_time = 0.0

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def channel_count(self) -> int:
        return self.source.channel_count

    @property
    def is_real_connection(self) -> bool:
        return self.source.is_connected

    @property
    def underruns(self) -> int:
        return self._underruns

    def connect(self, stream_name: str) -> StreamDescriptor:
        """
        Connect to an LSL stream and resize all per-channel state

        Args:
            stream_name: Requested stream name

        Returns:
            StreamDescriptor: Metadata of the bound stream

        Raises:
            StreamError: Discovery, matching or inlet failure; the pipeline is
                left disconnected
        """
        try:
            descriptor = self.source.open_stream(stream_name)
        except StreamError as e:
            logging.error(f"Connect to '{stream_name}' failed: {e}")
            self.disconnect()
            raise

        with self._lock:
            self.source.bind(descriptor)
            self.filters.initialize(descriptor.channel_count)
            self.buffers.resize(descriptor.channel_count)
            self._pending_pull = None
        return descriptor

    def disconnect(self):
        """Drop the connection immediately; in-flight pulls are discarded"""
        with self._lock:
            self.source.disconnect()
            self.filters.teardown()
            self.buffers.resize(self.source.channel_count)
            self._pending_pull = None

    def current_stream_info(self) -> Optional[StreamDescriptor]:
        return self.source.current_descriptor()

    def list_streams(self, timeout: Optional[float] = None) -> List[StreamCandidate]:
        """Discover advertised streams (blocking)"""
        return self.source.list_streams(timeout)

    def start_processing(self):
        """Start the tick loop on a background thread"""
        if self._state == PipelineState.RUNNING:
            logging.warning("Processing already running")
            return

        self._stop_event.clear()
        self._state = PipelineState.RUNNING
        self._thread = threading.Thread(target=self._run, name="eeg-pipeline", daemon=True)
        self._thread.start()
        logging.info(f"Processing started ({1.0 / self.config.tick_interval:.0f} Hz tick)")

    def stop(self, timeout: float = 1.0):
        """Stop the tick loop"""
        if self._state != PipelineState.RUNNING:
            return
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logging.warning(f"Tick thread did not exit within {timeout:.1f} s; still running")
                return
        self._thread = None
        self._state = PipelineState.STOPPED
        logging.info("Processing stopped")

    def close(self):
        """Stop processing and release the pull worker and sink"""
        self.stop()
        self._executor.shutdown(wait=False)
        self.sink.close()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def tick(self, timestamp: float) -> Optional[TickResult]:
        """
        Run one processing step

        Args:
            timestamp: Seconds since processing started

        Returns:
            Optional[TickResult]: None on an underrun (nothing emitted)
        """
        with self._lock:
            raw = self._acquire_sample(timestamp)
            if raw is None:
                self._underruns += 1
                logging.debug(f"Underrun at t={timestamp:.3f}s")
                return None

            filtered = self.filters.process(raw)
            self.buffers.push_sample(raw, filtered)
            self._sample_count += 1
            emit_samples = (self._sample_count - 1) % self.config.emit_every == 0

            band_powers = None
            if timestamp >= self._next_band_time:
                band_powers = self.analyzer.analyze(self.buffers, timestamp)
                while self._next_band_time <= timestamp:
                    self._next_band_time += self.config.band_interval

        if emit_samples:
            self._emit(EVENT_SAMPLE, raw)
            self._emit(EVENT_FILTERED_SAMPLE, filtered)
        if band_powers is not None:
            self._emit(EVENT_BAND_POWERS, band_powers)

        return TickResult(sample=raw, filtered=filtered, band_powers=band_powers,
                          emitted=emit_samples)

    def analyze(self, timestamp: float) -> List[BandPowers]:
        """Compute band powers for all full windows right now"""
        with self._lock:
            return self.analyzer.analyze(self.buffers, timestamp)

    def _acquire_sample(self, timestamp: float) -> Optional[Sample]:
        if not self.source.is_connected:
            return self.synthesizer.generate(timestamp, self.source.channel_count)

        pulled = self._take_pulled_sample()
        if pulled is None:
            if self.config.synthesize_on_underrun:
                return self.synthesizer.generate(timestamp, self.source.channel_count)
            return None
        return Sample(timestamp=timestamp, channels=pulled.channels)

    def _take_pulled_sample(self) -> Optional[Sample]:
        """Collect a finished pull if there is one, and keep one pull in flight"""
        result = None
        future = self._pending_pull
        if future is not None and future.done():
            self._pending_pull = None
            try:
                result = future.result()
            except Exception as e:
                logging.warning(f"LSL pull raised: {e}")

        if self._pending_pull is None:
            self._pending_pull = self._executor.submit(
                self.source.fetch_sample, self.source.state.bound_name, self.source.channel_count)

        if result is not None and len(result.channels) != self.source.channel_count:
            return None
        return result

    def _emit(self, event: str, payload):
        try:
            self.sink.emit(event, payload)
        except Exception as e:
            logging.error(f"Failed to emit '{event}': {e}")

    def _run(self):
        interval = self.config.tick_interval
        start = time.monotonic()
        next_tick = start
        self._next_band_time = 0.0

        while not self._stop_event.is_set():
            timestamp = time.monotonic() - start
            try:
                self.tick(timestamp)
            except Exception as e:
                logging.error(f"Tick failed at t={timestamp:.3f}s: {e}")

            next_tick += interval
            now = time.monotonic()
            if next_tick < now:
                # Fell behind: drop the missed ticks instead of bursting
                next_tick += (int((now - next_tick) / interval) + 1) * interval
            self._stop_event.wait(next_tick - now)
