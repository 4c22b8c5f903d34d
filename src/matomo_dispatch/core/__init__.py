"""Core data types for the Matomo dispatcher."""

from .endpoint import Endpoint
from .errors import DispatchError, InvalidEndpointError, SerializationError, TransportError
from .events import Event
from .serializer import EventSerializer

__all__ = [
    "DispatchError",
    "Endpoint",
    "Event",
    "EventSerializer",
    "InvalidEndpointError",
    "SerializationError",
    "TransportError",
]
