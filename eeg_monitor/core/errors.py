"""
Stream connection errors

Every failure of connect() is reported as one of these exceptions. None of
them are raised from the real-time tick path.
"""

from typing import Sequence

from .data_types import StreamCandidate


class StreamError(Exception):
    """Base exception for stream connection failures."""
    pass


class DiscoveryError(StreamError):
    """Raised when no streams are advertised or resolution fails."""
    pass


class MatchError(StreamError):
    """Raised when streams were found but none matches the requested name."""

    def __init__(self, target: str, candidates: Sequence[StreamCandidate]):
        self.target = target
        self.candidates = list(candidates)
        listing = "; ".join(c.describe() for c in self.candidates)
        super().__init__(f"No LSL stream found with name: '{target}'. Available streams: {listing}")


class InletError(StreamError):
    """Raised when a matched stream cannot be opened."""
    pass
