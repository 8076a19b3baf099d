"""Tenant-scoped Call records.

Every read and write takes the caller's organization id; a record belonging
to another organization is indistinguishable from a missing one.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from callsync.schemas.call import Call, CallStatus, CallUpdate, is_terminal
from callsync.schemas.responses import DashboardMetrics
from callsync.services.directory import AgentStore

logger = logging.getLogger(__name__)


class CallStore:
    def __init__(self, agents: AgentStore | None = None) -> None:
        self._calls: dict[str, Call] = {}
        self._by_provider_id: dict[str, str] = {}
        self._agents = agents
        self._lock = asyncio.Lock()

    async def create_call(self, call: Call) -> Call:
        async with self._lock:
            self._calls[call.id] = call
            if call.provider_call_id:
                self._by_provider_id[call.provider_call_id] = call.id
        return call.model_copy()

    async def get_call(self, call_id: str, organization_id: str) -> Call | None:
        call = self._calls.get(call_id)
        if call is None or call.organization_id != organization_id:
            return None
        return call.model_copy()

    async def get_call_by_provider_id(self, provider_call_id: str) -> Call | None:
        """Unscoped lookup used by vendor callbacks, which carry no caller tenant."""
        call_id = self._by_provider_id.get(provider_call_id)
        if call_id is None:
            return None
        return self._calls[call_id].model_copy()

    async def list_calls(self, organization_id: str) -> list[Call]:
        calls = [c for c in self._calls.values() if c.organization_id == organization_id]
        calls.sort(key=lambda c: c.created_at, reverse=True)
        return [c.model_copy() for c in calls]

    async def update_call(
        self, call_id: str, organization_id: str, update: CallUpdate
    ) -> Call | None:
        """Apply a partial update, re-reading the stored call under the lock.

        A terminal status is never replaced by a non-terminal one, ended_at is
        written once and provider_call_id cannot change once assigned.
        """
        async with self._lock:
            current = self._calls.get(call_id)
            if current is None or current.organization_id != organization_id:
                return None

            changes = update.model_dump(exclude_unset=True)

            new_status = changes.get("status")
            if new_status is not None and is_terminal(current.status) and not is_terminal(new_status):
                logger.info(
                    "Call %s already %s, ignoring status %s",
                    call_id,
                    current.status,
                    new_status,
                )
                changes.pop("status")

            if current.ended_at is not None:
                changes.pop("ended_at", None)

            new_provider_id = changes.get("provider_call_id")
            if current.provider_call_id and new_provider_id != current.provider_call_id:
                if new_provider_id is not None:
                    logger.warning(
                        "Call %s provider id is %s, refusing to change it to %s",
                        call_id,
                        current.provider_call_id,
                        new_provider_id,
                    )
                changes.pop("provider_call_id", None)

            updated = current.model_copy(
                update={**changes, "updated_at": datetime.now(timezone.utc)}
            )
            self._calls[call_id] = updated
            if updated.provider_call_id:
                self._by_provider_id[updated.provider_call_id] = call_id

        return updated.model_copy()

    async def get_dashboard_metrics(self, organization_id: str) -> DashboardMetrics:
        calls = [c for c in self._calls.values() if c.organization_id == organization_id]
        total_calls = len(calls)

        agents = await self._agents.list_agents(organization_id) if self._agents else []
        active_agents = sum(1 for a in agents if a.status == "active")

        completed = sum(1 for c in calls if c.status == CallStatus.completed)
        success_rate = (completed / total_calls) * 100 if total_calls else 0.0

        today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        conversations_today = sum(1 for c in calls if c.created_at >= today)

        durations = [c.duration for c in calls if c.duration and c.duration > 0]
        avg_duration = sum(durations) / len(durations) if durations else 0

        return DashboardMetrics(
            total_calls=total_calls,
            total_agents=len(agents),
            active_agents=active_agents,
            success_rate=round(success_rate, 1),
            conversations_today=conversations_today,
            avg_call_duration=round(avg_duration),
        )
