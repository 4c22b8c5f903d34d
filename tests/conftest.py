"""Shared test doubles for the dispatcher tests."""

from __future__ import annotations

import io
from concurrent.futures import Executor, Future
from typing import Any, Callable, List, Optional, Tuple

import pytest

from matomo_dispatch.core.events import Event
from matomo_dispatch.identification import StaticUserAgentResolver
from matomo_dispatch.sender import HTTPDispatcher

ENDPOINT = "https://example.org/piwik.php"


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self.submitted = 0
        self._shutdown = False

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future: Future = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, **kwargs: Any) -> None:
        self._shutdown = True


class DeferredExecutor(Executor):
    """Queues submitted work until run_all() is called."""

    def __init__(self) -> None:
        self.jobs: List[Tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for future, fn, args, kwargs in jobs:
            try:
                result = fn(*args, **kwargs)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)


class FakeResponse(io.BytesIO):
    def __init__(self, status: int = 200, body: bytes = b"") -> None:
        super().__init__(body)
        self.status = status


class FakeOpener:
    """urlopen stand-in that records requests and replays a canned result."""

    def __init__(self, status: int = 200, body: bytes = b"", error: Optional[BaseException] = None) -> None:
        self.status = status
        self.body = body
        self.error = error
        self.calls: List[Tuple[Any, float]] = []

    def __call__(self, request: Any, timeout: float) -> FakeResponse:
        self.calls.append((request, timeout))
        if self.error is not None:
            raise self.error
        # A fresh response per call, like urlopen
        return FakeResponse(self.status, self.body)

    @property
    def last_request(self) -> Any:
        return self.calls[-1][0]


class Recorder:
    """Collects success/failure callback invocations."""

    def __init__(self) -> None:
        self.successes = 0
        self.failures: List[BaseException] = []

    def success(self) -> None:
        self.successes += 1

    def failure(self, error: BaseException) -> None:
        self.failures.append(error)


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def events() -> List[Event]:
    return [Event(site_id=1, event_category="A"), Event(site_id=1, event_category="B")]


@pytest.fixture
def make_dispatcher(opener: FakeOpener):
    """Build dispatchers that run inline and never touch the network."""
    created: List[HTTPDispatcher] = []

    def factory(**kwargs: Any) -> HTTPDispatcher:
        kwargs.setdefault("opener", opener)
        kwargs.setdefault("io_executor", InlineExecutor())
        kwargs.setdefault("resolver_executor", InlineExecutor())
        if not kwargs.get("user_agent"):
            kwargs.setdefault("resolver", StaticUserAgentResolver(None))
        dispatcher = HTTPDispatcher(kwargs.pop("base_url", ENDPOINT), **kwargs)
        created.append(dispatcher)
        return dispatcher

    yield factory

    for dispatcher in created:
        dispatcher.close()
