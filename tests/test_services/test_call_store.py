from datetime import datetime, timezone

import pytest

from callsync.schemas.call import Call, CallUpdate
from callsync.schemas.directory import Agent
from callsync.services.call_store import CallStore
from callsync.services.directory import AgentStore


@pytest.mark.asyncio
async def test_get_call_is_scoped_to_organization():
    store = CallStore()
    call = await store.create_call(Call(id="call-1", organization_id="org-1"))

    assert (await store.get_call(call.id, "org-1")).id == "call-1"
    assert await store.get_call(call.id, "org-2") is None


@pytest.mark.asyncio
async def test_update_call_from_other_organization_is_rejected():
    store = CallStore()
    await store.create_call(Call(id="call-1", organization_id="org-1", status="ringing"))

    result = await store.update_call("call-1", "org-2", CallUpdate(status="completed"))

    assert result is None
    assert (await store.get_call("call-1", "org-1")).status == "ringing"


@pytest.mark.asyncio
async def test_terminal_status_is_never_reverted():
    store = CallStore()
    await store.create_call(Call(id="call-1", organization_id="org-1", status="completed"))

    updated = await store.update_call(
        "call-1", "org-1", CallUpdate(status="in_progress", transcription="late")
    )

    assert updated.status == "completed"
    assert updated.transcription == "late"


@pytest.mark.asyncio
async def test_ended_at_is_written_once():
    store = CallStore()
    first = datetime(2026, 1, 1, tzinfo=timezone.utc)
    await store.create_call(Call(id="call-1", organization_id="org-1"))

    await store.update_call("call-1", "org-1", CallUpdate(status="completed", ended_at=first))
    updated = await store.update_call(
        "call-1", "org-1", CallUpdate(ended_at=datetime.now(timezone.utc))
    )

    assert updated.ended_at == first


@pytest.mark.asyncio
async def test_provider_call_id_cannot_change():
    store = CallStore()
    await store.create_call(Call(id="call-1", organization_id="org-1", provider_call_id="ext-1"))

    updated = await store.update_call("call-1", "org-1", CallUpdate(provider_call_id="ext-2"))

    assert updated.provider_call_id == "ext-1"
    assert (await store.get_call_by_provider_id("ext-1")).id == "call-1"
    assert await store.get_call_by_provider_id("ext-2") is None


@pytest.mark.asyncio
async def test_returned_calls_are_copies():
    store = CallStore()
    call = await store.create_call(Call(id="call-1", organization_id="org-1"))
    call.status = "completed"

    assert (await store.get_call("call-1", "org-1")).status == "queued"


@pytest.mark.asyncio
async def test_list_calls_newest_first():
    store = CallStore()
    await store.create_call(
        Call(id="old", organization_id="org-1", created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    )
    await store.create_call(
        Call(id="new", organization_id="org-1", created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))
    )
    await store.create_call(Call(id="other", organization_id="org-2"))

    calls = await store.list_calls("org-1")

    assert [c.id for c in calls] == ["new", "old"]


@pytest.mark.asyncio
async def test_dashboard_metrics():
    agents = AgentStore()
    agents.add_agent(Agent(id="a1", organization_id="org-1", name="One"))
    agents.add_agent(Agent(id="a2", organization_id="org-1", name="Two", status="inactive"))
    agents.add_agent(Agent(id="a3", organization_id="org-2", name="Other"))
    store = CallStore(agents)
    await store.create_call(Call(organization_id="org-1", status="completed", duration=30))
    await store.create_call(Call(organization_id="org-1", status="completed", duration=61))
    await store.create_call(Call(organization_id="org-1", status="failed"))
    await store.create_call(Call(organization_id="org-2", status="completed", duration=999))

    metrics = await store.get_dashboard_metrics("org-1")

    assert metrics.total_calls == 3
    assert metrics.total_agents == 2
    assert metrics.active_agents == 1
    assert metrics.success_rate == 66.7
    assert metrics.conversations_today == 3
    assert metrics.avg_call_duration == 46


@pytest.mark.asyncio
async def test_dashboard_metrics_empty_organization():
    metrics = await CallStore().get_dashboard_metrics("org-1")

    assert metrics.total_calls == 0
    assert metrics.success_rate == 0.0
    assert metrics.avg_call_duration == 0
