"""
Storefront Event Bus — Dispatcher
===================================
Routes committed domain events to registered subscribers.

Dispatch behavior:
1. Look up subscribers by event_type
2. Execute handlers sequentially
3. Catch subscriber exceptions per handler, log, continue
4. NEVER undo the committed change that produced the event

It only routes. The change must be committed before it is heard.
"""

import logging

from core.events.envelope import DomainEvent
from core.events.registry import SubscriberRegistry

logger = logging.getLogger("storefront.events")


def dispatch(event: DomainEvent, registry: SubscriberRegistry) -> dict:
    """
    Dispatch a committed event to all registered subscribers.

    Returns:
        dict with dispatch results:
        {
            'event_type': str,
            'event_id': str,
            'subscribers_notified': int,
            'subscribers_failed': int,
            'failures': list[dict]
        }

    This function NEVER raises for handler failures.
    """
    event_type = event.event_type
    event_id = str(event.event_id)

    subscribers = registry.get_subscribers(event_type)

    result = {
        "event_type": event_type,
        "event_id": event_id,
        "subscribers_notified": 0,
        "subscribers_failed": 0,
        "failures": [],
    }

    if not subscribers:
        logger.debug(
            f"No subscribers for event type '{event_type}' "
            f"(event_id: {event_id})"
        )
        return result

    for handler, subscriber_name in subscribers:
        handler_name = getattr(handler, "__qualname__", str(handler))

        try:
            handler(event)
            result["subscribers_notified"] += 1
            logger.debug(
                f"Dispatched {event_type} → {handler_name} "
                f"(subscriber: {subscriber_name})"
            )

        except Exception as exc:
            result["subscribers_failed"] += 1
            result["failures"].append({
                "handler": handler_name,
                "subscriber": subscriber_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            })
            logger.error(
                f"Subscriber failed: {handler_name} for "
                f"{event_type} (event_id: {event_id}): {exc}",
                exc_info=True,
            )

    logger.info(
        f"Dispatch complete: {event_type} (event_id: {event_id}) — "
        f"{result['subscribers_notified']} notified, "
        f"{result['subscribers_failed']} failed"
    )

    return result


class EventPublisher:
    """Binds a registry so services can publish without knowing it."""

    def __init__(self, registry: SubscriberRegistry | None = None):
        self._registry = registry or SubscriberRegistry()

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    def publish(self, event: DomainEvent) -> dict:
        return dispatch(event, self._registry)


def publish_after_commit(unit_of_work, publisher: EventPublisher | None, event: DomainEvent) -> None:
    """
    Queue event for publishing once unit_of_work commits.

    A failing publisher is logged; the committed change stands.
    """
    if publisher is None:
        return

    def _send() -> None:
        try:
            publisher.publish(event)
        except Exception:
            logger.error(
                f"Publishing {event.event_type} (event_id: {event.event_id}) "
                f"failed; committed change remains",
                exc_info=True,
            )

    unit_of_work.on_commit(_send)
