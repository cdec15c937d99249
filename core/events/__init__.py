"""
Storefront Event Bus — Public API
===================================
Committed changes are published to in-process subscribers.
"""

from core.events.dispatcher import EventPublisher, dispatch, publish_after_commit
from core.events.envelope import DomainEvent, validate_event_type
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)
from core.events.registry import SubscriberRegistry

__all__ = [
    "dispatch",
    "publish_after_commit",
    "DomainEvent",
    "EventPublisher",
    "SubscriberRegistry",
    "EventBusError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
    "validate_event_type",
]
