"""Error types surfaced by the Matomo dispatcher."""

from __future__ import annotations

from typing import Optional


class DispatchError(Exception):
    """Base class for all dispatcher errors."""


class InvalidEndpointError(DispatchError, ValueError):
    """The configured collector URL cannot be used."""


class SerializationError(DispatchError):
    """A batch of events could not be converted to the wire payload."""


class TransportError(DispatchError):
    """The network layer failed before a response was received."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
