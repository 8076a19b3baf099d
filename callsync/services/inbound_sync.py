import asyncio
import logging
from datetime import datetime, timezone

from callsync.mappers.status_normalizer import normalize_status
from callsync.schemas.bolna import Execution
from callsync.schemas.call import Call, is_terminal
from callsync.schemas.directory import Agent
from callsync.services.bolna import BolnaService
from callsync.services.call_store import CallStore
from callsync.services.directory import AgentStore
from callsync.services.events import EventSink

logger = logging.getLogger(__name__)

INBOUND_POLL_INTERVAL = 15  # seconds


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def execution_to_call(execution: Execution, agent: Agent) -> Call:
    telephony = execution.telephony_data
    try:
        duration = round(float(execution.conversation_duration or 0))
    except (TypeError, ValueError):
        duration = 0

    status = normalize_status(execution.status) if execution.status else "completed"
    started_at = _parse_timestamp(execution.created_at) or datetime.now(timezone.utc)
    ended_at = _parse_timestamp(execution.updated_at) if is_terminal(status) else None

    return Call(
        organization_id=agent.organization_id,
        agent_id=agent.id,
        provider_call_id=execution.id,
        direction="inbound",
        call_type="inbound",
        status=status,
        contact_phone=(telephony.from_number if telephony else None) or execution.user_number,
        started_at=started_at,
        ended_at=ended_at,
        duration=duration,
        recording_url=telephony.recording_url if telephony else None,
        transcription=execution.transcript or None,
        metadata=execution.model_dump(mode="json"),
    )


class InboundCallSync:
    """Imports inbound calls that only exist on the Bolna side.

    Inbound calls are not created by the dialer, so they are discovered by
    listing each agent's recent executions.
    """

    def __init__(
        self,
        store: CallStore,
        agents: AgentStore,
        bolna: BolnaService,
        events: EventSink,
        interval: float = INBOUND_POLL_INTERVAL,
        page_size: int = 50,
    ) -> None:
        self._store = store
        self._agents = agents
        self._bolna = bolna
        self._events = events
        self._interval = interval
        self._page_size = page_size
        self._processed_ids: set[str] = set()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def processed_count(self) -> int:
        return len(self._processed_ids)

    def start(self) -> None:
        if self.running:
            logger.info("Inbound sync already running")
            return
        logger.info("Starting inbound call sync (every %ss)", self._interval)
        self._task = asyncio.create_task(self._run(), name="inbound-call-sync")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped inbound call sync")

    async def _run(self) -> None:
        while True:
            await self.sync_once()
            await asyncio.sleep(self._interval)

    async def sync_once(self) -> int:
        """Sync every Bolna-backed agent once. Returns the number of new calls."""
        total = 0
        try:
            agents = await self._agents.list_vendor_agents()
        except Exception:
            logger.exception("Inbound sync could not list agents")
            return 0

        for agent in agents:
            try:
                total += await self.sync_agent(agent)
            except Exception as exc:
                logger.error("Inbound sync failed for agent %s: %s", agent.name, exc)
        return total

    async def sync_agent(self, agent: Agent) -> int:
        executions = await self._bolna.get_agent_executions(
            agent.bolna_agent_id, page=1, limit=self._page_size
        )
        inbound = [
            e for e in executions
            if e.telephony_data and e.telephony_data.call_type == "inbound"
        ]

        created = 0
        for execution in inbound:
            if execution.id in self._processed_ids:
                continue
            if await self._store.get_call_by_provider_id(execution.id) is not None:
                self._processed_ids.add(execution.id)
                continue

            call = await self._store.create_call(execution_to_call(execution, agent))
            self._processed_ids.add(execution.id)
            created += 1
            logger.info(
                "Synced inbound call %s from %s (%ss)",
                execution.id,
                call.contact_phone,
                call.duration,
            )
            self._events.call_created(agent.organization_id, call)

        if created:
            logger.info("Synced %d new inbound calls for agent %s", created, agent.name)
            metrics = await self._store.get_dashboard_metrics(agent.organization_id)
            self._events.metrics_updated(agent.organization_id, metrics)
        return created
