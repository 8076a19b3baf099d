import json

import pytest
import respx
from httpx import Response

from callsync.schemas.call import Call

BOLNA_CALL_URL = "https://api.bolna.ai/call"


@pytest.mark.asyncio
async def test_list_calls_is_scoped(client, auth_headers, app):
    store = app.state.call_store
    await store.create_call(Call(id="call-a", organization_id="org-a"))
    await store.create_call(Call(id="call-b", organization_id="org-b"))

    resp = await client.get("/api/calls", headers=auth_headers())

    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()] == ["call-a"]


@pytest.mark.asyncio
async def test_get_call_of_other_organization_is_not_found(client, auth_headers, app):
    await app.state.call_store.create_call(Call(id="call-b", organization_id="org-b"))

    resp = await client.get("/api/calls/call-b", headers=auth_headers())

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Call not found"}


@pytest.mark.asyncio
async def test_get_call(client, auth_headers, app):
    await app.state.call_store.create_call(
        Call(id="call-a", organization_id="org-a", status="ringing", contact_phone="+91")
    )

    resp = await client.get("/api/calls/call-a", headers=auth_headers())

    assert resp.status_code == 200
    assert resp.json()["status"] == "ringing"
    assert resp.json()["organization_id"] == "org-a"


@pytest.mark.asyncio
async def test_initiate_call(client, auth_headers, app):
    with respx.mock(assert_all_called=False) as bolna_mock:
        bolna_mock.post(BOLNA_CALL_URL).mock(
            return_value=Response(200, json={"execution_id": "exec-1", "status": "queued"})
        )
        bolna_mock.get(url__startswith="https://api.bolna.ai/").mock(return_value=Response(404))

        resp = await client.post(
            "/api/calls/initiate",
            json={
                "agent_id": "agent-1",
                "recipient_phone": "+919999999999",
                "contact_name": "Asha",
                "organizationId": "org-a",
            },
            headers=auth_headers(),
        )

    assert resp.status_code == 200
    data = resp.json()
    assert data["call"]["provider_call_id"] == "exec-1"
    assert data["call"]["organization_id"] == "org-a"
    assert data["bolna_call"]["execution_id"] == "exec-1"
    assert app.state.call_poller.is_polling("exec-1")

    body = json.loads(bolna_mock.calls[0].request.content)
    assert body["agent_id"] == "bolna-agent-1"
    assert body["user_data"]["organizationId"] == "org-a"

    stats = await client.get("/api/calls/polling/stats", headers=auth_headers())
    assert stats.json()["active_polls"] == 1
    assert stats.json()["polls"][0]["call_id"] == data["call"]["id"]


@pytest.mark.asyncio
async def test_initiate_call_unknown_agent(client, auth_headers):
    resp = await client.post(
        "/api/calls/initiate",
        json={"agent_id": "agent-1", "recipient_phone": "+919999999999"},
        headers=auth_headers("user-b"),
    )

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Agent not found"}


@respx.mock
@pytest.mark.asyncio
async def test_stop_call(client, auth_headers, app):
    respx.post("https://api.bolna.ai/call/exec-9/stop").mock(return_value=Response(200, json={}))
    await app.state.call_store.create_call(
        Call(id="call-a", organization_id="org-a", provider_call_id="exec-9", status="in_progress")
    )

    resp = await client.post("/api/calls/call-a/stop", headers=auth_headers())

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["call"]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_polling_stats_empty(client, auth_headers):
    resp = await client.get("/api/calls/polling/stats", headers=auth_headers())

    assert resp.status_code == 200
    assert resp.json() == {
        "active_polls": 0,
        "polls": [],
        "inbound_polling_active": False,
        "processed_inbound_count": 0,
    }


@respx.mock
@pytest.mark.asyncio
async def test_polling_stats_report_inbound_sync(client, auth_headers, app):
    respx.get("https://api.bolna.ai/agent/bolna-agent-1/executions").mock(
        return_value=Response(
            200,
            json=[
                {"id": "exec-in-1", "status": "completed", "telephony_data": {"call_type": "inbound"}},
                {"id": "exec-in-2", "status": "completed", "telephony_data": {"call_type": "inbound"}},
            ],
        )
    )
    inbound = app.state.inbound_sync
    assert await inbound.sync_once() == 2

    inbound.start()
    resp = await client.get("/api/calls/polling/stats", headers=auth_headers())
    await inbound.stop()

    assert resp.json()["inbound_polling_active"] is True
    assert resp.json()["processed_inbound_count"] == 2


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.json() == {"status": "healthy"}
