"""
Event sinks

The pipeline publishes three event channels: "sample", "filteredSample" and
"bandPowers". A sink receives every emission through emit(event, payload).
"""

import json
import logging
import socket
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Dict, List

from ..core.config import UDP_HOST, UDP_PORT, EVENT_CHANNELS


def _serialize(payload: Any) -> Any:
    if isinstance(payload, (list, tuple)):
        return [_serialize(item) for item in payload]
    if hasattr(payload, "to_dict"):
        return payload.to_dict()
    return payload


class EventSink(ABC):
    """Receiver of pipeline events"""

    @abstractmethod
    def emit(self, event: str, payload: Any):
        pass

    def close(self):
        pass


class NullSink(EventSink):
    """Discards every event"""

    def emit(self, event: str, payload: Any):
        pass


class CallbackSink(EventSink):
    """
    Fan events out to subscribed callbacks

    Callback exceptions are logged and do not reach the pipeline.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callable[[Any], None]):
        if event not in EVENT_CHANNELS:
            raise ValueError(f"Unknown event channel '{event}', expected one of {EVENT_CHANNELS}")
        self._subscribers[event].append(callback)

    def emit(self, event: str, payload: Any):
        for callback in self._subscribers.get(event, []):
            try:
                callback(payload)
            except Exception as e:
                logging.error(f"Event callback for '{event}' failed: {e}")


class UDPEventSender(EventSink):
    """
    Send pipeline events as UDP JSON messages

    Each datagram is {"event": <channel>, "data": <payload>}.
    """

    def __init__(self, host: str = UDP_HOST, port: int = UDP_PORT):
        self.host = host
        self.port = port
        self.socket = None
        self._setup_socket()

    def _setup_socket(self):
        """Setup UDP socket for communication"""
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            logging.info(f"UDP event sender initialized: {self.host}:{self.port}")
        except Exception as e:
            logging.error(f"Failed to setup UDP socket: {e}")

    def emit(self, event: str, payload: Any) -> bool:
        """
        Send one event

        Args:
            event: Event channel name
            payload: Sample, FilteredSample or list of BandPowers

        Returns:
            bool: True if sent successfully
        """
        if self.socket is None:
            return False

        try:
            message = {"event": event, "data": _serialize(payload)}
            json_str = json.dumps(message)
            self.socket.sendto(json_str.encode('utf-8'), (self.host, self.port))
            return True

        except Exception as e:
            logging.error(f"Failed to send UDP message: {e}")
            return False

    def close(self):
        """Close UDP socket"""
        if self.socket:
            self.socket.close()
            self.socket = None
