"""HTTP transport module for sending batches to a Matomo collector."""

from .base import Dispatcher
from .http_dispatcher import HTTPDispatcher, create_default_dispatcher
from .request_builder import JSON_CONTENT_TYPE, OutboundRequest, build_request

__all__ = ["Dispatcher", "HTTPDispatcher", "JSON_CONTENT_TYPE", "OutboundRequest", "build_request", "create_default_dispatcher"]
