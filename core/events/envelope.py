"""
Storefront Event Bus — Domain Event
=====================================
Immutable record of a committed state change, handed to subscribers
(notification senders, audit writers) after the unit of work commits.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from core.events.errors import InvalidEventTypeFormat

EVENT_TYPE_PATTERN = re.compile(r"^[a-z_]+\.[a-z_]+\.[a-z_]+\.v[0-9]+$")


def validate_event_type(event_type: str) -> None:
    if not isinstance(event_type, str) or not EVENT_TYPE_PATTERN.match(event_type):
        raise InvalidEventTypeFormat(event_type or "")


@dataclass(frozen=True)
class DomainEvent:
    event_type: str
    occurred_at: datetime
    payload: Dict[str, Any]
    actor_id: Optional[str] = None
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        validate_event_type(self.event_type)
        if not isinstance(self.occurred_at, datetime):
            raise TypeError("occurred_at must be datetime.")
        if not isinstance(self.payload, dict):
            raise TypeError("payload must be dict.")

    @property
    def source_engine(self) -> str:
        return self.event_type.split(".")[0]

    def to_dict(self) -> dict:
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "actor_id": self.actor_id,
            "payload": dict(self.payload),
        }
