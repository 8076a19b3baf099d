"""Tenant-scoped realtime notifications.

Emitters are fire-and-forget: publishing never awaits a subscriber.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Protocol

from pydantic import BaseModel

from callsync.schemas.call import Call
from callsync.schemas.responses import DashboardMetrics

logger = logging.getLogger(__name__)

CALL_CREATED = "call:created"
CALL_UPDATED = "call:updated"
METRICS_UPDATED = "metrics:updated"


class EventSink(Protocol):
    def call_created(self, organization_id: str, call: Call) -> None: ...

    def call_updated(self, organization_id: str, call: Call) -> None: ...

    def metrics_updated(self, organization_id: str, metrics: DashboardMetrics) -> None: ...


class Event(BaseModel):
    event: str
    data: dict[str, Any]


class EventBus:
    """In-process EventSink fanning events out to per-organization queues."""

    def __init__(self, max_queue_size: int = 100) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[Event]]] = defaultdict(set)
        self._max_queue_size = max_queue_size

    def subscribe(self, organization_id: str) -> asyncio.Queue[Event]:
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers[organization_id].add(queue)
        return queue

    def unsubscribe(self, organization_id: str, queue: asyncio.Queue[Event]) -> None:
        subscribers = self._subscribers.get(organization_id)
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[organization_id]

    def subscriber_count(self, organization_id: str) -> int:
        return len(self._subscribers.get(organization_id, ()))

    def publish(self, organization_id: str, event: str, payload: BaseModel) -> None:
        message = Event(event=event, data=payload.model_dump(mode="json"))
        for queue in list(self._subscribers.get(organization_id, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping %s for org %s: subscriber queue full", event, organization_id
                )

    def call_created(self, organization_id: str, call: Call) -> None:
        logger.debug("Emitting %s to org %s (call %s)", CALL_CREATED, organization_id, call.id)
        self.publish(organization_id, CALL_CREATED, call)

    def call_updated(self, organization_id: str, call: Call) -> None:
        logger.debug(
            "Emitting %s to org %s (call %s, status %s)",
            CALL_UPDATED,
            organization_id,
            call.id,
            call.status,
        )
        self.publish(organization_id, CALL_UPDATED, call)

    def metrics_updated(self, organization_id: str, metrics: DashboardMetrics) -> None:
        self.publish(organization_id, METRICS_UPDATED, metrics)
