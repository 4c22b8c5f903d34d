"""Dispatcher contract shared by all transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from ..core.events import Event

SuccessCallback = Callable[[], None]
FailureCallback = Callable[[BaseException], None]


class Dispatcher(ABC):
    """Delivers batches of events to a collector.

    Implementations call exactly one of ``success`` or ``failure`` per
    ``send``. When and what to send, and whether to retry, is up to the caller.
    """

    @abstractmethod
    def send(self, events: Sequence[Event], success: SuccessCallback, failure: FailureCallback) -> None:
        """Send one batch and report its outcome."""
