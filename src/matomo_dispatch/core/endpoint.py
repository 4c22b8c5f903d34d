"""Validated collector endpoint."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidEndpointError

COLLECTOR_SCRIPTS = ("piwik.php", "matomo.php")


class Endpoint(BaseModel):
    """The collector URL events are POSTed to. Immutable once built."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True, extra="forbid")

    url: str = Field(..., min_length=1, description="Absolute URL of the Matomo tracking script")

    @field_validator("url")
    @classmethod
    def check_collector_url(cls, v: str) -> str:
        """Require an absolute http(s) URL pointing at the tracking script."""
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"unsupported scheme {parts.scheme!r}")
        if not parts.hostname:
            raise ValueError("missing host")
        if not parts.path.endswith(COLLECTOR_SCRIPTS):
            raise ValueError(f"path must end in one of {', '.join(COLLECTOR_SCRIPTS)}")
        if parts.query or parts.fragment:
            raise ValueError("query strings and fragments are not allowed")
        return v

    @classmethod
    def parse(cls, url: str) -> "Endpoint":
        """Build an endpoint, raising InvalidEndpointError on bad input."""
        try:
            return cls(url=url)
        except ValidationError as e:
            raise InvalidEndpointError(f"Invalid collector URL {url!r}: {e.errors()[0]['msg']}") from e

    def __str__(self) -> str:
        return self.url
