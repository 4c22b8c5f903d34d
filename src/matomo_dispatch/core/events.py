"""Tracking event model.

Events are built upstream by the tracker and handed to a dispatcher in
batches. The transport never looks inside them; only the serializer does.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Event:
    """A single tracked occurrence, expressed as Matomo tracking parameters."""

    site_id: int
    visitor_id: Optional[str] = None
    url: Optional[str] = None
    action_name: Optional[str] = None

    # Matomo "event" tracking
    event_category: Optional[str] = None
    event_action: Optional[str] = None
    event_name: Optional[str] = None
    event_value: Optional[float] = None

    # Any additional tracking API parameter, e.g. {"dimension1": "beta"}.
    # Stored as a tuple of pairs so events stay immutable and hashable.
    extra: Union[Mapping[str, Any], Tuple[Tuple[str, Any], ...]] = field(default_factory=tuple)

    def __post_init__(self):
        pairs = self.extra.items() if isinstance(self.extra, Mapping) else self.extra
        object.__setattr__(self, "extra", tuple((key, value) for key, value in pairs))

    def to_query_items(self) -> List[Tuple[str, Any]]:
        """Return the tracking parameters in wire order, skipping unset fields."""
        items: List[Tuple[str, Any]] = [("idsite", self.site_id)]
        optional = (
            ("_id", self.visitor_id),
            ("url", self.url),
            ("action_name", self.action_name),
            ("e_c", self.event_category),
            ("e_a", self.event_action),
            ("e_n", self.event_name),
            ("e_v", self.event_value),
        )
        items.extend((key, value) for key, value in optional if value is not None)
        items.extend(self.extra)
        return items
