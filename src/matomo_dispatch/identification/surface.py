"""Transient surface used to read the ambient client identification string.

A surface is created for one read only: attach it, evaluate the query, detach
it. Detaching is always safe, including when attach never happened.
"""

from __future__ import annotations

import platform
import sys
from typing import Any

USER_AGENT_QUERY = "navigator.userAgent"


def _os_token() -> str:
    system = platform.system()
    machine = platform.machine() or "unknown"
    if system == "Darwin":
        version = platform.mac_ver()[0].replace(".", "_") or "10_15"
        return f"Macintosh; Intel Mac OS X {version}"
    if system == "Windows":
        version = ".".join(platform.version().split(".")[:2]) or "10.0"
        return f"Windows NT {version}; {machine}"
    return f"X11; {system or 'Linux'} {machine}"


class PlatformSurface:
    """Off-screen probe exposing the host platform's user-agent string."""

    def __init__(self) -> None:
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        self._attached = True

    def detach(self) -> None:
        self._attached = False

    def evaluate(self, expression: str) -> Any:
        """Evaluate a query against the surface.

        Only ``navigator.userAgent`` is understood.
        """
        if not self._attached:
            raise RuntimeError("surface is not attached")
        if expression != USER_AGENT_QUERY:
            raise ValueError(f"unsupported query: {expression}")
        python_version = ".".join(str(part) for part in sys.version_info[:3])
        return f"Mozilla/5.0 ({_os_token()}) Python/{python_version}"
