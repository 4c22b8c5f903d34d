"""Matomo dispatch - HTTP transport for batches of analytics tracking events."""

from .config import DispatcherConfig, setup_logging
from .core import DispatchError, Endpoint, Event, EventSerializer, InvalidEndpointError, SerializationError, TransportError
from .sender import Dispatcher, HTTPDispatcher, create_default_dispatcher

__version__ = "1.0.0"

__all__ = [
    "DispatchError",
    "Dispatcher",
    "DispatcherConfig",
    "Endpoint",
    "Event",
    "EventSerializer",
    "HTTPDispatcher",
    "InvalidEndpointError",
    "SerializationError",
    "TransportError",
    "create_default_dispatcher",
    "setup_logging",
]
