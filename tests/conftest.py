"""
Pytest Configuration and Fixtures
==================================

Shared test configuration and fixtures for all test modules, including an
in-memory stream backend standing in for the LSL network.
"""

import sys
import threading
from collections import deque
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import numpy as np

from eeg_monitor.core.data_types import StreamCandidate
from eeg_monitor.acquisition.sources import StreamBackend, LSLSource


# =============================================================================
# Fake LSL backend
# =============================================================================

class FakeBackend(StreamBackend):
    """In-memory StreamBackend with scripted streams and samples."""

    def __init__(self, candidates=(), samples=(), fail_discover=False, fail_open=False,
                 fail_pull=False, pull_gate=None):
        self.candidates = list(candidates)
        self.samples = deque(samples)
        self.fail_discover = fail_discover
        self.fail_open = fail_open
        self.fail_pull = fail_pull
        self.pull_gate = pull_gate          # threading.Event that pull() waits on
        self.opened = []
        self.closed = []
        self.pull_calls = 0

    def discover(self, timeout):
        if self.fail_discover:
            raise RuntimeError("resolver unavailable")
        return list(self.candidates)

    def open(self, candidate):
        if self.fail_open:
            raise RuntimeError("inlet refused")
        inlet = object()
        self.opened.append((candidate.name, inlet))
        return inlet

    def pull(self, inlet, timeout):
        self.pull_calls += 1
        if self.pull_gate is not None:
            self.pull_gate.wait(2.0)
        if self.fail_pull:
            raise RuntimeError("stream lost")
        if not self.samples:
            return None, None
        return self.samples.popleft(), 1234.5

    def close(self, inlet):
        self.closed.append(inlet)


def make_candidate(name="TestEEG", channel_count=8, source_id="test-source",
                   stream_type="EEG", sample_rate=250.0):
    return StreamCandidate(name=name, stream_type=stream_type, source_id=source_id,
                           channel_count=channel_count, sample_rate=sample_rate,
                           hostname="localhost")


# =============================================================================
# Global Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def random_seed():
    """Set random seed for reproducibility."""
    np.random.seed(42)
    return 42


@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def fake_backend():
    """Backend advertising one 8-channel stream with no data queued."""
    return FakeBackend(candidates=[make_candidate()])


@pytest.fixture
def lsl_source(fake_backend):
    return LSLSource(backend=fake_backend, resolve_timeout=0.1, pull_timeout=0.0)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
