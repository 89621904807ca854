"""
Unit Tests for Pipeline Module
==============================

Tests for the tick scheduler, connection commands, event ordering and the
underrun policy.
"""

import threading
import time

import numpy as np
import pytest

from conftest import FakeBackend, make_candidate
from eeg_monitor.acquisition.sources import LSLSource, SampleSynthesizer
from eeg_monitor.communication.event_sender import CallbackSink, EventSink
from eeg_monitor.core.config import (
    BUFFER_SIZE,
    DEFAULT_CHANNEL_COUNT,
    EVENT_BAND_POWERS,
    EVENT_CHANNELS,
    EVENT_FILTERED_SAMPLE,
    EVENT_SAMPLE,
    PipelineConfig,
)
from eeg_monitor.core.errors import DiscoveryError, MatchError
from eeg_monitor.pipeline.scheduler import Pipeline, PipelineState

FS = 250.0


class RecordingSink(EventSink):
    """Records (event, payload) pairs in emission order."""

    def __init__(self):
        self.events = []
        self.lock = threading.Lock()

    def emit(self, event, payload):
        with self.lock:
            self.events.append((event, payload))

    def names(self):
        with self.lock:
            return [name for name, _ in self.events]


class FailingSink(EventSink):
    def emit(self, event, payload):
        raise RuntimeError("sink down")


def _make_pipeline(backend=None, sink=None, **config):
    source = LSLSource(backend=backend or FakeBackend(), resolve_timeout=0.1, pull_timeout=0.0)
    return Pipeline(sink=sink or RecordingSink(), source=source,
                    synthesizer=SampleSynthesizer(seed=0), config=PipelineConfig(**config))


def _tick_until_sample(pipeline, start_time=0.0, attempts=200):
    """Tick until the pull worker delivers a sample."""
    t = start_time
    for _ in range(attempts):
        result = pipeline.tick(t)
        if result is not None:
            return result
        t += 1 / FS
        time.sleep(0.005)
    return None


@pytest.fixture
def pipeline():
    p = _make_pipeline()
    yield p
    p.close()


# =============================================================================
# Synthetic Mode Tests
# =============================================================================


class TestSyntheticTicks:
    """Tests for the tick loop without a real stream."""

    def test_windows_fill_and_analysis_covers_all_channels(self, pipeline):
        for i in range(BUFFER_SIZE):
            assert pipeline.tick(i / FS) is not None

        assert pipeline.buffers.lengths() == [BUFFER_SIZE] * DEFAULT_CHANNEL_COUNT
        powers = pipeline.analyze(BUFFER_SIZE / FS)
        assert [p.channel for p in powers] == list(range(DEFAULT_CHANNEL_COUNT))
        assert all(p.alpha > 0 and p.theta > 0 for p in powers)

    def test_partial_windows_give_empty_band_powers(self, pipeline):
        for i in range(BUFFER_SIZE - 1):
            pipeline.tick(i / FS)
        assert pipeline.analyze(1.0) == []

    def test_emission_order(self, pipeline):
        pipeline.tick(0.0)
        assert pipeline.sink.names() == [EVENT_SAMPLE, EVENT_FILTERED_SAMPLE, EVENT_BAND_POWERS]
        assert pipeline.sink.events[2][1] == []

    def test_band_cadence(self, pipeline):
        for i in range(int(FS)):
            pipeline.tick(i / FS)
        band_events = [p for name, p in pipeline.sink.events if name == EVENT_BAND_POWERS]
        assert len(band_events) == 4

    def test_filtered_sample_shares_timestamp(self, pipeline):
        result = pipeline.tick(0.5)
        assert result.sample.timestamp == 0.5
        assert result.filtered.timestamp == 0.5

    def test_unconnected_chain_uses_fallback(self, pipeline):
        result = pipeline.tick(0.1)
        np.testing.assert_allclose(
            result.filtered.channels, np.clip(result.sample.channels, -300, 300) * 0.95)

    def test_emit_every_throttles_samples_only(self):
        p = _make_pipeline(emit_every=4)
        try:
            for i in range(8):
                p.tick(i / FS)
            assert p.sink.names().count(EVENT_SAMPLE) == 2
            assert p.sink.names().count(EVENT_FILTERED_SAMPLE) == 2
            assert p.buffers.lengths()[0] == 8
        finally:
            p.close()

    def test_sink_failures_do_not_stop_ticks(self):
        p = _make_pipeline(sink=FailingSink())
        try:
            assert p.tick(0.0) is not None
            assert p.tick(0.004) is not None
        finally:
            p.close()


# =============================================================================
# Connection Tests
# =============================================================================


class TestConnection:
    """Tests for connect/disconnect commands."""

    def test_connect_unknown_stream_without_streams(self, pipeline):
        with pytest.raises(DiscoveryError):
            pipeline.connect("DoesNotExist")
        assert not pipeline.is_real_connection
        assert pipeline.current_stream_info() is None

    def test_connect_unknown_stream_with_streams(self):
        p = _make_pipeline(backend=FakeBackend(candidates=[make_candidate(name="Other")]))
        try:
            with pytest.raises(MatchError):
                p.connect("DoesNotExist")
            assert not p.is_real_connection
        finally:
            p.close()

    @pytest.mark.parametrize("channels", [1, 4, 8, 17, 32])
    def test_connect_resizes_all_state(self, channels):
        backend = FakeBackend(candidates=[make_candidate(channel_count=channels)])
        p = _make_pipeline(backend=backend)
        try:
            descriptor = p.connect("TestEEG")
            assert descriptor.channel_count == channels
            assert p.channel_count == channels
            assert p.buffers.n_channels == channels
            assert len(p.buffers.raw) == channels
            assert p.filters.bandpass.n_channels == channels
            assert p.filters.notch.n_channels == channels
            assert p.is_real_connection
        finally:
            p.close()

    def test_disconnect_restores_defaults(self):
        backend = FakeBackend(candidates=[make_candidate(channel_count=4)])
        p = _make_pipeline(backend=backend)
        try:
            p.connect("TestEEG")
            p.disconnect()
            assert p.channel_count == DEFAULT_CHANNEL_COUNT
            assert p.buffers.n_channels == DEFAULT_CHANNEL_COUNT
            assert not p.filters.is_initialized
            assert p.current_stream_info() is None
            assert not p.is_real_connection
        finally:
            p.close()

    def test_failed_reconnect_disconnects(self):
        backend = FakeBackend(candidates=[make_candidate(channel_count=4)])
        p = _make_pipeline(backend=backend)
        try:
            p.connect("TestEEG")
            backend.candidates = []
            with pytest.raises(DiscoveryError):
                p.connect("TestEEG")
            assert p.channel_count == DEFAULT_CHANNEL_COUNT
            assert p.buffers.n_channels == DEFAULT_CHANNEL_COUNT
        finally:
            p.close()


# =============================================================================
# Real Mode Tests
# =============================================================================


class TestRealMode:
    """Tests for sample pulls through the worker thread."""

    def test_real_samples_flow_through(self):
        backend = FakeBackend(candidates=[make_candidate(channel_count=3)])
        p = _make_pipeline(backend=backend)
        try:
            p.connect("TestEEG")
            backend.samples.append([10.0, 20.0, 30.0])

            result = _tick_until_sample(p, start_time=1.0)
            assert result is not None
            np.testing.assert_array_equal(result.sample.channels, [10.0, 20.0, 30.0])
            # Restamped with pipeline time, not the LSL clock
            assert 1.0 <= result.sample.timestamp < 3.0
            assert p.buffers.lengths() == [1, 1, 1]
        finally:
            p.close()

    def test_underrun_skips_tick(self):
        backend = FakeBackend(candidates=[make_candidate()])
        p = _make_pipeline(backend=backend)
        try:
            p.connect("TestEEG")
            p.sink.events.clear()
            assert p.tick(0.0) is None
            assert p.sink.events == []
            assert p.buffers.lengths() == [0] * 8
            assert p.underruns == 1
        finally:
            p.close()

    def test_underrun_synthesis_flag(self):
        backend = FakeBackend(candidates=[make_candidate(channel_count=5)])
        p = _make_pipeline(backend=backend, synthesize_on_underrun=True)
        try:
            p.connect("TestEEG")
            result = p.tick(0.0)
            assert result is not None
            assert len(result.sample.channels) == 5
        finally:
            p.close()

    def test_pull_completing_after_disconnect_is_discarded(self):
        gate = threading.Event()
        backend = FakeBackend(candidates=[make_candidate(channel_count=3)], pull_gate=gate)
        gate.set()
        p = _make_pipeline(backend=backend)
        try:
            p.connect("TestEEG")
            gate.clear()
            backend.samples.append([1.0, 2.0, 3.0])
            assert p.tick(0.0) is None      # pull now blocked in the worker

            p.disconnect()
            gate.set()
            time.sleep(0.05)

            result = p.tick(0.004)
            assert len(result.sample.channels) == DEFAULT_CHANNEL_COUNT
            assert p.buffers.lengths() == [1] * DEFAULT_CHANNEL_COUNT
        finally:
            gate.set()
            p.close()


# =============================================================================
# Scheduler Tests
# =============================================================================


class TestScheduler:
    """Tests for the background tick loop."""

    @pytest.mark.slow
    def test_start_and_stop(self):
        sink = CallbackSink()
        received = {name: 0 for name in EVENT_CHANNELS}

        def counter(name):
            def _count(_):
                received[name] += 1
            return _count

        for name in EVENT_CHANNELS:
            sink.subscribe(name, counter(name))

        p = _make_pipeline(sink=sink)
        try:
            assert p.state == PipelineState.STOPPED
            p.start_processing()
            p.start_processing()  # second call is a no-op
            assert p.state == PipelineState.RUNNING
            time.sleep(0.4)
            p.stop()
            assert p.state == PipelineState.STOPPED

            assert received[EVENT_SAMPLE] > 10
            assert received[EVENT_SAMPLE] == received[EVENT_FILTERED_SAMPLE]
            assert received[EVENT_BAND_POWERS] >= 1
        finally:
            p.close()

    def test_callback_sink_rejects_unknown_channel(self):
        with pytest.raises(ValueError):
            CallbackSink().subscribe("eeg_sample", lambda _: None)

    def test_stop_keeps_running_while_tick_is_blocked(self):
        release = threading.Event()
        entered = threading.Event()

        class BlockingSink(EventSink):
            def emit(self, event, payload):
                entered.set()
                release.wait(5.0)

        p = _make_pipeline(sink=BlockingSink())
        try:
            p.start_processing()
            assert entered.wait(1.0)
            p.stop(timeout=0.05)
            assert p.state == PipelineState.RUNNING

            p.start_processing()  # no second loop while the first is alive
            release.set()
            p.stop(timeout=1.0)
            assert p.state == PipelineState.STOPPED
        finally:
            release.set()
            p.close()


# =============================================================================
# Configuration Tests
# =============================================================================


class TestPipelineConfig:
    """Tests for PipelineConfig validation."""

    def test_defaults_are_valid(self):
        config = PipelineConfig()
        assert config.band_interval == 0.25
        assert config.buffer_size == BUFFER_SIZE

    @pytest.mark.parametrize("band_interval", [0.0, -0.25])
    def test_rejects_non_positive_band_interval(self, band_interval):
        with pytest.raises(ValueError, match="band_interval"):
            PipelineConfig(band_interval=band_interval)

    @pytest.mark.parametrize("field, value", [
        ("buffer_size", 0),
        ("tick_interval", 0.0),
        ("emit_every", 0),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            PipelineConfig(**{field: value})

    def test_short_band_interval_analyzes_every_tick(self):
        p = _make_pipeline(band_interval=0.001)
        try:
            results = [p.tick(i / FS) for i in range(5)]
            assert all(r.band_powers is not None for r in results)
        finally:
            p.close()
