"""
EEG data acquisition sources

This module handles LSL stream discovery and connection, and synthetic
data generation.
"""

from .sources import (LSLSource, SampleSynthesizer, StreamBackend, PylslBackend,
                      match_stream, describe_stream)

__all__ = ['LSLSource', 'SampleSynthesizer', 'StreamBackend', 'PylslBackend',
           'match_stream', 'describe_stream']
