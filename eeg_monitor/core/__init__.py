"""
Core data types and structures for EEG Monitor

This module contains the fundamental data classes used throughout the system.
"""

from .data_types import (Sample, FilteredSample, BandPowers, StreamCandidate,
                         StreamDescriptor, ConnectionState)
from .errors import StreamError, DiscoveryError, MatchError, InletError
from .config import *

__all__ = ['Sample', 'FilteredSample', 'BandPowers', 'StreamCandidate',
           'StreamDescriptor', 'ConnectionState', 'PipelineConfig',
           'StreamError', 'DiscoveryError', 'MatchError', 'InletError']
