"""End-to-end dispatch against a local HTTP server."""

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from matomo_dispatch.core import Event, TransportError
from matomo_dispatch.identification import StaticUserAgentResolver
from matomo_dispatch.sender import HTTPDispatcher

EXPECTED_BODY = b'{"requests":["?idsite=1&e_c=A","?idsite=1&e_c=B"]}'


class CollectorHandler(BaseHTTPRequestHandler):
    status = 200
    received = []

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        self.received.append({"path": self.path, "headers": dict(self.headers), "body": self.rfile.read(length)})
        self.send_response(self.status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def collector():
    CollectorHandler.received = []
    CollectorHandler.status = 200
    server = ThreadingHTTPServer(("127.0.0.1", 0), CollectorHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def _events():
    return [Event(site_id=1, event_category="A"), Event(site_id=1, event_category="B")]


def _dispatcher(port, **kwargs):
    kwargs.setdefault("resolver", StaticUserAgentResolver(None))
    return HTTPDispatcher(f"http://127.0.0.1:{port}/piwik.php", **kwargs)


def test_batch_reaches_collector(collector):
    with _dispatcher(collector.server_address[1]) as dispatcher:
        assert dispatcher.submit(_events()).result(timeout=10) is None

    assert len(CollectorHandler.received) == 1
    received = CollectorHandler.received[0]
    assert received["path"] == "/piwik.php"
    assert received["body"] == EXPECTED_BODY
    headers = {key.lower(): value for key, value in received["headers"].items()}
    assert headers["content-type"] == "application/json; charset=utf-8"
    assert headers["cache-control"] == "no-cache"
    assert "user-agent" not in headers


def test_user_agent_header_on_the_wire(collector):
    with _dispatcher(collector.server_address[1], user_agent="Wire/1.0") as dispatcher:
        dispatcher.submit(_events()).result(timeout=10)

    headers = {key.lower(): value for key, value in CollectorHandler.received[0]["headers"].items()}
    assert headers["user-agent"] == "Wire/1.0"


def test_server_error_counts_as_delivered(collector):
    CollectorHandler.status = 500

    with _dispatcher(collector.server_address[1]) as dispatcher:
        assert dispatcher.submit(_events()).result(timeout=10) is None
        assert dispatcher.get_stats()["total_batches_sent"] == 1


def test_connection_refused():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    with _dispatcher(port) as dispatcher:
        future = dispatcher.submit(_events())
        with pytest.raises(TransportError) as excinfo:
            future.result(timeout=10)

    assert isinstance(excinfo.value.cause, OSError)
