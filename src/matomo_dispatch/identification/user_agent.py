"""Best-effort resolution of the User-Agent header value.

The value is resolved at most once per dispatcher, off the send path. Until
it is known, requests simply go out without a User-Agent header.
"""

from __future__ import annotations

import platform
import re
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional

from loguru import logger

from .surface import USER_AGENT_QUERY, PlatformSurface

SDK_SUFFIX = " MatomoDispatch SDK HTTPDispatcher"

# Device token in the ambient string, e.g. "(X11;" or "(iPhone;"
DEVICE_TOKEN_PATTERN = re.compile(r"\((iPad|iPhone|Macintosh|X11|Windows NT [\d.]+);", re.IGNORECASE)


def default_device_model() -> str:
    return platform.platform(terse=True)


def format_user_agent(ambient: str, device_model: str, suffix: str = SDK_SUFFIX) -> str:
    """Rewrite the device token of an ambient user agent and append the SDK suffix."""
    return DEVICE_TOKEN_PATTERN.sub(lambda _: f"({device_model};", ambient) + suffix


class UserAgentCell:
    """Holds the user agent; written at most once, read without blocking."""

    def __init__(self, value: Optional[str] = None):
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        return self._value

    def is_set(self) -> bool:
        return self._value is not None

    def publish(self, value: str) -> bool:
        """Publish the value unless one is already present.

        Returns:
            True if this call set the value
        """
        with self._lock:
            if self._value is not None:
                return False
            self._value = value
            return True


class UserAgentResolver(ABC):
    """Source of a client identification string."""

    @abstractmethod
    def resolve(self, executor: Executor) -> "Future[Optional[str]]":
        """Start resolution and return a future for the (possibly absent) value."""


class StaticUserAgentResolver(UserAgentResolver):
    """Resolver returning a fixed value without touching the executor."""

    def __init__(self, value: Optional[str]):
        self.value = value

    def resolve(self, executor: Executor) -> "Future[Optional[str]]":
        future: Future = Future()
        future.set_result(self.value)
        return future


class PlatformUserAgentResolver(UserAgentResolver):
    """Reads the ambient user agent through a transient platform surface."""

    def __init__(
        self,
        surface_factory: Callable[[], Any] = PlatformSurface,
        device_model: Callable[[], str] = default_device_model,
        suffix: str = SDK_SUFFIX,
    ):
        self._surface_factory = surface_factory
        self._device_model = device_model
        self._suffix = suffix

    def resolve(self, executor: Executor) -> "Future[Optional[str]]":
        return executor.submit(self._read)

    def _read(self) -> Optional[str]:
        surface = self._surface_factory()
        try:
            surface.attach()
            result = surface.evaluate(USER_AGENT_QUERY)
        except Exception as e:
            logger.debug(f"User agent read failed: {e}")
            return None
        finally:
            surface.detach()

        if not isinstance(result, str):
            logger.debug(f"User agent read returned {type(result).__name__}, ignoring")
            return None

        try:
            device_model = self._device_model()
        except Exception as e:
            logger.debug(f"Could not determine device model: {e}")
            return None

        return format_user_agent(result, device_model, self._suffix)
