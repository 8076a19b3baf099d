import pytest

from callsync.schemas.call import Call
from callsync.schemas.responses import DashboardMetrics
from callsync.services.events import CALL_CREATED, METRICS_UPDATED, EventBus


@pytest.mark.asyncio
async def test_events_only_reach_own_organization():
    bus = EventBus()
    own = bus.subscribe("org-1")
    other = bus.subscribe("org-2")

    bus.call_created("org-1", Call(id="call-1", organization_id="org-1"))

    event = own.get_nowait()
    assert event.event == CALL_CREATED
    assert event.data["id"] == "call-1"
    assert other.empty()


@pytest.mark.asyncio
async def test_metrics_event_payload():
    bus = EventBus()
    queue = bus.subscribe("org-1")

    bus.metrics_updated(
        "org-1",
        DashboardMetrics(
            total_calls=1,
            total_agents=1,
            active_agents=1,
            success_rate=100.0,
            conversations_today=1,
            avg_call_duration=12,
        ),
    )

    event = queue.get_nowait()
    assert event.event == METRICS_UPDATED
    assert event.data["avg_call_duration"] == 12


@pytest.mark.asyncio
async def test_full_queue_drops_event():
    bus = EventBus(max_queue_size=1)
    queue = bus.subscribe("org-1")
    call = Call(id="call-1", organization_id="org-1")

    bus.call_updated("org-1", call)
    bus.call_updated("org-1", call)

    assert queue.qsize() == 1


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = EventBus()
    queue = bus.subscribe("org-1")
    bus.unsubscribe("org-1", queue)

    bus.call_created("org-1", Call(organization_id="org-1"))

    assert bus.subscriber_count("org-1") == 0
    assert queue.empty()
