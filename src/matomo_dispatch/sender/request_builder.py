"""Construction of outbound collector requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.request import Request

from ..core.endpoint import Endpoint

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class OutboundRequest:
    """A fully formed request, built per send and discarded afterwards."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def to_urllib(self) -> Request:
        return Request(self.url, data=self.body, headers=dict(self.headers), method=self.method)


def build_request(
    endpoint: Endpoint,
    method: str,
    *,
    content_type: Optional[str] = None,
    body: Optional[bytes] = None,
    user_agent: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> OutboundRequest:
    """Build a request for the collector.

    Caching is always bypassed. Content-Type is only set when given and User-Agent
    only when non-empty.
    """
    headers = {
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
    if content_type is not None:
        headers["Content-Type"] = content_type
    if user_agent:
        headers["User-Agent"] = user_agent

    return OutboundRequest(method=method, url=endpoint.url, headers=headers, body=body, timeout=timeout)
