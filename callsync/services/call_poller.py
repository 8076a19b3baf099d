"""Status polling for in-flight calls.

Webhooks are the primary way Bolna reports call progress; this poller is the
backstop. Each active call gets one asyncio task that asks Bolna for the call
snapshot every ``interval`` seconds, writes what changed and stops once the
call is terminal or the attempt budget runs out.
"""

import asyncio
import logging

from callsync.mappers.call_updates import build_poll_update
from callsync.schemas.call import is_terminal
from callsync.schemas.responses import PollingStats
from callsync.services.bolna import BolnaService
from callsync.services.call_store import CallStore
from callsync.services.events import EventSink
from callsync.services.poll_registry import PollSession, PollSessionRegistry

logger = logging.getLogger(__name__)

POLL_INTERVAL = 10  # seconds
MAX_POLL_DURATION = 15 * 60  # seconds
MAX_POLL_ATTEMPTS = MAX_POLL_DURATION // POLL_INTERVAL
MAX_CONSECUTIVE_ERRORS = 5


class CallPoller:
    def __init__(
        self,
        store: CallStore,
        bolna: BolnaService,
        events: EventSink,
        registry: PollSessionRegistry | None = None,
        interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        max_consecutive_errors: int = MAX_CONSECUTIVE_ERRORS,
    ) -> None:
        self._store = store
        self._bolna = bolna
        self._events = events
        self._registry = registry if registry is not None else PollSessionRegistry()
        self._interval = interval
        self._max_attempts = max_attempts
        self._max_consecutive_errors = max_consecutive_errors

    def start(self, provider_call_id: str, call_id: str, organization_id: str) -> None:
        """Begin polling a call. A second start for the same id is a no-op."""
        if not provider_call_id or not call_id or not organization_id:
            raise ValueError("provider_call_id, call_id and organization_id are required")

        session = PollSession(
            provider_call_id=provider_call_id,
            call_id=call_id,
            organization_id=organization_id,
        )
        if not self._registry.add(session):
            logger.info("Already polling call %s", provider_call_id)
            return

        logger.info(
            "Starting status polling for call %s (call_id=%s, org=%s)",
            provider_call_id,
            call_id,
            organization_id,
        )
        session.task = asyncio.create_task(
            self._run(session), name=f"call-poll:{provider_call_id}"
        )

    def stop(self, provider_call_id: str) -> None:
        """Stop polling a call. Safe to call from inside the call's own tick."""
        session = self._registry.remove(provider_call_id)
        if session is None:
            return

        task = session.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        logger.info(
            "Stopped polling for %s after %d attempts", provider_call_id, session.attempts
        )

    async def stop_all(self) -> None:
        sessions = self._registry.sessions()
        logger.info("Stopping all active polls (%d active)", len(sessions))
        for session in sessions:
            self.stop(session.provider_call_id)

        tasks = [s.task for s in sessions if s.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def is_polling(self, provider_call_id: str) -> bool:
        return provider_call_id in self._registry

    def get_stats(self) -> PollingStats:
        return self._registry.stats()

    async def poll_once(self, provider_call_id: str) -> None:
        """Run a single tick for an active session, outside its schedule."""
        session = self._registry.get(provider_call_id)
        if session is not None:
            await self._poll(session)

    def _is_active(self, session: PollSession) -> bool:
        return self._registry.get(session.provider_call_id) is session

    async def _run(self, session: PollSession) -> None:
        while self._is_active(session):
            await self._poll(session)
            if not self._is_active(session):
                break
            await asyncio.sleep(self._interval)

    async def _poll(self, session: PollSession) -> None:
        async with session.lock:
            if not self._is_active(session):
                return

            session.attempts += 1
            try:
                await self._tick(session)
                session.consecutive_errors = 0
            except Exception as exc:
                session.consecutive_errors += 1
                logger.warning(
                    "Error polling %s (%d consecutive): %s: %s",
                    session.provider_call_id,
                    session.consecutive_errors,
                    type(exc).__name__,
                    exc,
                )
                if session.consecutive_errors >= self._max_consecutive_errors:
                    logger.error(
                        "Stopping poll for %s after %d consecutive errors",
                        session.provider_call_id,
                        session.consecutive_errors,
                        exc_info=True,
                    )
                    self.stop(session.provider_call_id)
                    return

            if self._is_active(session) and session.attempts >= self._max_attempts:
                logger.info(
                    "Max attempts (%d) reached for %s, stopping",
                    self._max_attempts,
                    session.provider_call_id,
                )
                self.stop(session.provider_call_id)

    async def _tick(self, session: PollSession) -> None:
        pid = session.provider_call_id
        org_id = session.organization_id

        current = await self._store.get_call(session.call_id, org_id)
        if current is None:
            logger.warning("Call %s not found, stopping poll for %s", session.call_id, pid)
            self.stop(pid)
            return

        if is_terminal(current.status):
            logger.info("Call %s already in terminal state: %s", pid, current.status)
            self.stop(pid)
            return

        logger.debug("Attempt %d/%d for %s", session.attempts, self._max_attempts, pid)
        details = await self._bolna.get_call_details(pid)
        if details is None:
            logger.debug("No details yet for %s", pid)
            return

        update = build_poll_update(current, details)
        if update is None:
            return

        logger.info(
            "Update found for %s: status %s -> %s, duration=%s, transcript=%s, recording=%s",
            pid,
            current.status,
            update.status,
            update.duration,
            bool(details.transcript),
            bool(details.recording_url),
        )
        updated = await self._store.update_call(session.call_id, org_id, update)
        if updated is not None:
            self._events.call_updated(org_id, updated)

        metrics = await self._store.get_dashboard_metrics(org_id)
        self._events.metrics_updated(org_id, metrics)

        if is_terminal(update.status) or (updated is not None and is_terminal(updated.status)):
            logger.info("Call %s reached %s, stopping poll", pid, update.status)
            self.stop(pid)
