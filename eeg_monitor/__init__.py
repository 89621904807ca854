"""
EEG Monitor - Real-time LSL EEG filtering and band power analysis

A modular Python package that acquires multi-channel EEG from Lab Streaming
Layer streams (or synthesizes it), filters every sample, and publishes raw,
filtered and band power events on a fixed 250 Hz cadence.

Python: 3.10+
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.data_types import Sample, FilteredSample, BandPowers, StreamDescriptor
from .core.errors import StreamError, DiscoveryError, MatchError, InletError
from .acquisition.sources import LSLSource, SampleSynthesizer
from .processing.preprocessor import FilterChain
from .processing.buffers import RingBufferStore
from .processing.features import BandPowerAnalyzer
from .pipeline.scheduler import Pipeline
from .communication.event_sender import CallbackSink, UDPEventSender

__all__ = [
    'Sample', 'FilteredSample', 'BandPowers', 'StreamDescriptor',
    'StreamError', 'DiscoveryError', 'MatchError', 'InletError',
    'LSLSource', 'SampleSynthesizer',
    'FilterChain', 'RingBufferStore', 'BandPowerAnalyzer',
    'Pipeline',
    'CallbackSink', 'UDPEventSender'
]
