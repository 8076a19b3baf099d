import logging
from datetime import datetime, timezone

from callsync.exceptions.custom import AgentNotFoundError, BolnaError, CallNotFoundError
from callsync.schemas.bolna import InitiateCallResponse
from callsync.schemas.call import Call, CallStatus, CallUpdate, is_terminal
from callsync.schemas.responses import InitiateCallResult
from callsync.services.bolna import BolnaService
from callsync.services.call_poller import CallPoller
from callsync.services.call_store import CallStore
from callsync.services.directory import AgentStore
from callsync.services.events import EventSink

logger = logging.getLogger(__name__)


def build_user_data(
    call_id: str,
    organization_id: str,
    lead_id: str | None = None,
    contact_name: str | None = None,
) -> dict:
    """Context Bolna echoes back in webhooks and exposes to agent prompts."""
    data: dict = {"callId": call_id, "organizationId": organization_id}
    if lead_id:
        data["leadId"] = lead_id
    if contact_name:
        # contact_name feeds the {{contact_name}} prompt variable.
        data["contact_name"] = contact_name
        data["contactName"] = contact_name
    return data


class DialerService:
    def __init__(
        self,
        store: CallStore,
        agents: AgentStore,
        bolna: BolnaService,
        poller: CallPoller,
        events: EventSink,
    ) -> None:
        self._store = store
        self._agents = agents
        self._bolna = bolna
        self._poller = poller
        self._events = events

    async def initiate_call(
        self,
        organization_id: str,
        agent_id: str,
        recipient_phone: str,
        contact_name: str | None = None,
        lead_id: str | None = None,
    ) -> InitiateCallResult:
        agent = await self._agents.get_agent(agent_id, organization_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        if not agent.bolna_agent_id:
            raise BolnaError(f"Agent {agent_id} is not registered with Bolna")

        call = await self._store.create_call(
            Call(
                organization_id=organization_id,
                agent_id=agent_id,
                lead_id=lead_id,
                contact_phone=recipient_phone,
                contact_name=contact_name,
                status=CallStatus.initiated,
            )
        )

        bolna_call: InitiateCallResponse | None = None
        try:
            bolna_call = await self._bolna.initiate_call(
                agent.bolna_agent_id,
                recipient_phone,
                from_phone_number=agent.phone_number,
                user_data=build_user_data(call.id, organization_id, lead_id, contact_name),
            )
        except Exception as exc:
            logger.error("Bolna initiate call failed for call %s: %s", call.id, exc)

        if bolna_call is not None and bolna_call.provider_call_id:
            updated = await self._store.update_call(
                call.id,
                organization_id,
                CallUpdate(
                    provider_call_id=bolna_call.provider_call_id,
                    started_at=datetime.now(timezone.utc),
                ),
            )
            call = updated or call

        self._events.call_created(organization_id, call)
        metrics = await self._store.get_dashboard_metrics(organization_id)
        self._events.metrics_updated(organization_id, metrics)

        if call.provider_call_id:
            self._poller.start(call.provider_call_id, call.id, organization_id)

        return InitiateCallResult(call=call, bolna_call=bolna_call)

    async def stop_call(self, organization_id: str, call_id: str) -> Call:
        call = await self._store.get_call(call_id, organization_id)
        if call is None:
            raise CallNotFoundError(call_id)

        if call.provider_call_id:
            self._poller.stop(call.provider_call_id)
            try:
                await self._bolna.stop_call(call.provider_call_id)
            except Exception as exc:
                logger.error("Error stopping Bolna call %s: %s", call.provider_call_id, exc)

        if is_terminal(call.status):
            return call

        updated = await self._store.update_call(
            call_id,
            organization_id,
            CallUpdate(status=CallStatus.cancelled, ended_at=datetime.now(timezone.utc)),
        )
        if updated is None:
            raise CallNotFoundError(call_id)

        self._events.call_updated(organization_id, updated)
        return updated
