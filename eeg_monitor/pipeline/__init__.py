"""
Real-time pipeline orchestration

This module contains the tick scheduler and the command surface used by
host applications.
"""

from .scheduler import Pipeline, PipelineState, TickResult

__all__ = ['Pipeline', 'PipelineState', 'TickResult']
