"""JSON serializer for Matomo bulk tracking requests.

A batch becomes a single document of the form::

    {"requests": ["?idsite=1&e_c=A", "?idsite=1&e_c=B"]}

which is what the collector's bulk endpoint expects.
"""

from __future__ import annotations

import json
import math
from typing import Any, Sequence
from urllib.parse import urlencode

from .errors import SerializationError
from .events import Event


class EventSerializer:
    """Converts a sequence of events into a bulk tracking payload."""

    def json_data(self, events: Sequence[Event]) -> bytes:
        """Serialize events to UTF-8 encoded JSON.

        Args:
            events: Events to serialize, in send order

        Returns:
            Encoded JSON document

        Raises:
            SerializationError: If any event carries a value that cannot be encoded
        """
        requests = [self.query_string(event) for event in events]
        try:
            return json.dumps({"requests": requests}, separators=(",", ":"), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Could not encode batch of {len(events)} events: {e}") from e

    def query_string(self, event: Event) -> str:
        """Build the '?key=value&...' form of a single event."""
        try:
            items = event.to_query_items()
        except AttributeError as e:
            raise SerializationError(f"Not a tracking event: {event!r}") from e
        return "?" + urlencode([(key, self._encode_value(key, value)) for key, value in items])

    @staticmethod
    def _encode_value(key: str, value: Any) -> str:
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise SerializationError(f"Parameter {key!r} is not a finite number: {value}")
            return repr(value)
        if isinstance(value, str):
            return value
        raise SerializationError(f"Parameter {key!r} has unsupported type {type(value).__name__}")
