from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field


class CallStatus(StrEnum):
    queued = "queued"
    initiated = "initiated"
    ringing = "ringing"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


TERMINAL_STATUSES = frozenset(
    {CallStatus.completed, CallStatus.failed, CallStatus.cancelled}
)


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_STATUSES


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Call(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    organization_id: str
    provider_call_id: str | None = None
    agent_id: str | None = None
    lead_id: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    direction: str = "outbound"
    call_type: str = "outbound"
    # Unrecognised vendor statuses are stored as-is, so this is not the enum.
    status: str = CallStatus.queued
    duration: int | None = None
    transcription: str | None = None
    recording_url: str | None = None
    metadata: dict | None = None
    created_at: datetime = Field(default_factory=_now)
    started_at: datetime | None = None
    ended_at: datetime | None = None
    updated_at: datetime = Field(default_factory=_now)


class CallUpdate(BaseModel):
    """Partial write to a Call. Only fields explicitly set are applied."""

    provider_call_id: str | None = None
    status: str | None = None
    duration: int | None = None
    transcription: str | None = None
    recording_url: str | None = None
    metadata: dict | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
