from __future__ import annotations

from pydantic import BaseModel

from callsync.schemas.bolna import InitiateCallResponse
from callsync.schemas.call import Call


class PollInfo(BaseModel):
    provider_call_id: str
    attempts: int
    elapsed_seconds: int
    call_id: str


class PollingStats(BaseModel):
    active_polls: int
    polls: list[PollInfo] = []
    inbound_polling_active: bool = False
    processed_inbound_count: int = 0


class DashboardMetrics(BaseModel):
    total_calls: int = 0
    total_agents: int = 0
    active_agents: int = 0
    success_rate: float = 0.0
    conversations_today: int = 0
    avg_call_duration: int = 0


class InitiateCallResult(BaseModel):
    call: Call
    bolna_call: InitiateCallResponse | None = None


class StopCallResult(BaseModel):
    success: bool
    call: Call | None = None


class WebhookAck(BaseModel):
    received: bool = True
    matched: bool = True
