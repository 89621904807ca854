"""
EEG signal processing components

This module contains the real-time filter chain, the rolling window store
and band power extraction.
"""

from .preprocessor import FilterChain, IIRFilter, BandpassFilter, NotchFilter, clip_artifacts
from .buffers import RingBuffer, RingBufferStore
from .features import BandPowerAnalyzer

__all__ = ['FilterChain', 'IIRFilter', 'BandpassFilter', 'NotchFilter', 'clip_artifacts',
           'RingBuffer', 'RingBufferStore', 'BandPowerAnalyzer']
