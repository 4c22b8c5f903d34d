"""HTTP dispatcher for delivering event batches to a Matomo collector.

Each batch is serialized to a single JSON document and POSTed to the
collector's tracking script. Any response that arrives counts as delivered;
only transport-level failures (DNS, connect, TLS, timeout, cancellation) and
serialization failures are reported as errors. Retrying is left to the caller.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from urllib.error import HTTPError
from urllib.request import Request, build_opener

from loguru import logger

from ..config.settings import DispatcherConfig
from ..core.endpoint import Endpoint
from ..core.errors import SerializationError, TransportError
from ..core.events import Event
from ..core.serializer import EventSerializer
from ..identification import PlatformUserAgentResolver, UserAgentCell, UserAgentResolver
from .base import Dispatcher, FailureCallback, SuccessCallback
from .request_builder import DEFAULT_TIMEOUT_SECONDS, JSON_CONTENT_TYPE, OutboundRequest, build_request

Opener = Callable[..., Any]

_OPENER = build_opener()
_OPENER.addheaders = []  # no implicit Python-urllib User-Agent


def _open(request: Request, timeout: float) -> Any:
    return _OPENER.open(request, timeout=timeout)


class _Outcome:
    """Fires exactly one of the success/failure callbacks, once."""

    def __init__(self, success: SuccessCallback, failure: FailureCallback):
        self._success = success
        self._failure = failure
        self._fired = False
        self._lock = threading.Lock()

    def succeed(self) -> None:
        if self._claim():
            self._invoke(self._success)

    def fail(self, error: BaseException) -> None:
        if self._claim():
            self._invoke(self._failure, error)

    def _claim(self) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            return True

    @staticmethod
    def _invoke(callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Dispatch callback {getattr(callback, '__name__', callback)!r} raised: {e}")


class HTTPDispatcher(Dispatcher):
    """Sends event batches to a collector endpoint over HTTP."""

    def __init__(
        self,
        base_url: Union[str, Endpoint],
        user_agent: Optional[str] = None,
        *,
        serializer: Optional[EventSerializer] = None,
        resolver: Optional[UserAgentResolver] = None,
        resolver_executor: Optional[Executor] = None,
        io_executor: Optional[Executor] = None,
        opener: Optional[Opener] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        io_workers: int = 4,
    ):
        """Initialize the dispatcher.

        Args:
            base_url: Collector URL, ending in piwik.php or matomo.php
            user_agent: Explicit User-Agent; skips automatic resolution
            serializer: Converts batches to the JSON payload
            resolver: User-Agent source used when none is given
            resolver_executor: Where user agent resolution runs
            io_executor: Where network round trips run
            opener: urlopen-compatible callable taking (request, timeout)
            timeout: Request timeout in seconds
            io_workers: Size of the I/O pool created when io_executor is None

        Raises:
            InvalidEndpointError: If base_url is not a collector URL
        """
        self.endpoint = base_url if isinstance(base_url, Endpoint) else Endpoint.parse(base_url)
        self.timeout = timeout
        self.serializer = serializer or EventSerializer()
        self._opener = opener or _open
        user_agent = user_agent or None
        self._user_agent = UserAgentCell(user_agent)

        self._owned_executors: List[Executor] = []
        self._io_executor = io_executor or self._own(ThreadPoolExecutor(max_workers=io_workers, thread_name_prefix="matomo-io"))

        # Statistics
        self._stats_lock = threading.Lock()
        self._total_batches_sent = 0
        self._total_batches_failed = 0
        self._total_events_sent = 0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

        if user_agent is None:
            self._start_user_agent_resolution(resolver or PlatformUserAgentResolver(), resolver_executor)

    @property
    def user_agent(self) -> Optional[str]:
        """Most recently known User-Agent, or None while unresolved."""
        return self._user_agent.get()

    def send(self, events: Sequence[Event], success: SuccessCallback, failure: FailureCallback) -> None:
        """Send a batch of events to the collector.

        Exactly one of the callbacks is called, possibly from an I/O thread.

        Args:
            events: Non-empty batch of events
            success: Called once the round trip completes, whatever the HTTP status
            failure: Called with a SerializationError or TransportError

        Raises:
            ValueError: If the batch is empty
        """
        if not events:
            raise ValueError("Cannot send an empty batch")

        outcome = _Outcome(success, failure)

        try:
            body = self.serializer.json_data(events)
        except Exception as e:
            error = e if isinstance(e, SerializationError) else SerializationError(f"Could not serialize batch: {e}")
            if error is not e:
                error.__cause__ = e
            logger.error(f"Failed to serialize batch of {len(events)} events: {error}")
            self._record_failure(error)
            outcome.fail(error)
            return

        request = build_request(
            self.endpoint,
            "POST",
            content_type=JSON_CONTENT_TYPE,
            body=body,
            user_agent=self._user_agent.get(),
            timeout=self.timeout,
        )
        logger.debug(f"Dispatching {len(events)} events ({len(body)} bytes) to {request.url}")

        try:
            self._io_executor.submit(self._perform, request, len(events), outcome)
        except RuntimeError as e:
            error = TransportError(f"Request cancelled, I/O executor unavailable: {e}", e)
            error.__cause__ = e
            logger.warning(str(error))
            self._record_failure(error)
            outcome.fail(error)

    def submit(self, events: Sequence[Event]) -> "Future[None]":
        """Send a batch and return a future for its outcome.

        The future resolves to None on success and raises the dispatch error
        on failure.
        """
        future: Future = Future()
        future.set_running_or_notify_cancel()
        self.send(events, lambda: future.set_result(None), future.set_exception)
        return future

    def get_stats(self) -> Dict[str, Any]:
        """Get dispatcher statistics.

        Returns:
            Dictionary with dispatcher statistics
        """
        with self._stats_lock:
            attempted = self._total_batches_sent + self._total_batches_failed
            return {
                "endpoint": self.endpoint.url,
                "total_batches_sent": self._total_batches_sent,
                "total_batches_failed": self._total_batches_failed,
                "total_events_sent": self._total_events_sent,
                "success_rate": self._total_batches_sent / max(1, attempted),
                "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
                "last_error": self._last_error,
                "has_user_agent": self._user_agent.is_set(),
            }

    def close(self, wait: bool = True) -> None:
        """Shut down executors created by this dispatcher.

        Injected executors are left running.
        """
        for executor in self._owned_executors:
            executor.shutdown(wait=wait)
        self._owned_executors.clear()

    def __enter__(self) -> "HTTPDispatcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _own(self, executor: Executor) -> Executor:
        self._owned_executors.append(executor)
        return executor

    def _start_user_agent_resolution(self, resolver: UserAgentResolver, executor: Optional[Executor]) -> None:
        executor = executor or self._own(ThreadPoolExecutor(max_workers=1, thread_name_prefix="matomo-ua"))
        try:
            future = resolver.resolve(executor)
        except Exception as e:
            logger.debug(f"Could not start user agent resolution: {e}")
            return
        future.add_done_callback(self._on_user_agent_resolved)

    def _on_user_agent_resolved(self, future: "Future[Optional[str]]") -> None:
        if future.cancelled():
            logger.debug("User agent resolution was cancelled")
            return

        error = future.exception()
        if error is not None:
            logger.debug(f"User agent resolution failed: {error}")
            return

        value = future.result()
        if not isinstance(value, str) or not value:
            logger.debug("User agent resolution produced no value")
            return

        if self._user_agent.publish(value):
            logger.info(f"Resolved user agent: {value}")

    def _perform(self, request: OutboundRequest, event_count: int, outcome: _Outcome) -> None:
        try:
            with self._opener(request.to_urllib(), timeout=request.timeout):
                pass
        except HTTPError as e:
            # A response arrived; its status is not inspected
            logger.debug(f"Collector answered HTTP {e.code}")
            e.close()
        except Exception as e:
            error = TransportError(f"Network error sending to {request.url}: {getattr(e, 'reason', e)}", e)
            error.__cause__ = e
            logger.warning(f"Failed to send batch of {event_count} events: {error}")
            self._record_failure(error)
            outcome.fail(error)
            return

        self._record_success(event_count)
        outcome.succeed()

    def _record_success(self, event_count: int) -> None:
        with self._stats_lock:
            self._total_batches_sent += 1
            self._total_events_sent += event_count
            self._last_successful_send = datetime.now()
            self._last_error = None

    def _record_failure(self, error: BaseException) -> None:
        with self._stats_lock:
            self._total_batches_failed += 1
            self._last_error = str(error)


def create_default_dispatcher(config: Optional[DispatcherConfig] = None, **kwargs: Any) -> HTTPDispatcher:
    """Create an HTTP dispatcher from configuration.

    Args:
        config: Dispatcher configuration; read from the environment when omitted
        **kwargs: Extra HTTPDispatcher arguments (executors, opener, resolver)

    Returns:
        Configured HTTP dispatcher
    """
    config = config or DispatcherConfig()
    return HTTPDispatcher(
        config.base_url,
        config.user_agent or None,
        timeout=config.timeout_seconds,
        io_workers=config.io_workers,
        **kwargs,
    )
