"""
Communication interfaces

This module delivers pipeline events to the host application, either through
in-process callbacks or as UDP JSON messages.
"""

from .event_sender import EventSink, NullSink, CallbackSink, UDPEventSender

__all__ = ['EventSink', 'NullSink', 'CallbackSink', 'UDPEventSender']
