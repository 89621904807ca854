"""
Utility functions

This module provides device identification helpers for LSL streams.
"""

from .channel_finder import (DeviceFamily, DEVICE_FAMILIES, identify_device,
                             channel_names_for, device_info, match_alias)

__all__ = ['DeviceFamily', 'DEVICE_FAMILIES', 'identify_device',
           'channel_names_for', 'device_info', 'match_alias']
