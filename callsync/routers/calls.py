import logging

from fastapi import APIRouter
from pydantic import BaseModel

from callsync.dependencies import (
    CallPollerDep,
    CallStoreDep,
    DialerDep,
    InboundSyncDep,
    TenantDep,
)
from callsync.exceptions.custom import CallNotFoundError
from callsync.schemas.call import Call
from callsync.schemas.responses import (
    DashboardMetrics,
    InitiateCallResult,
    PollingStats,
    StopCallResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class InitiateCallRequest(BaseModel):
    agent_id: str
    recipient_phone: str
    contact_name: str | None = None
    lead_id: str | None = None


@router.get("/calls", response_model=list[Call])
async def list_calls(tenant: TenantDep, store: CallStoreDep) -> list[Call]:
    return await store.list_calls(tenant.organization_id)


@router.get("/calls/polling/stats", response_model=PollingStats)
async def polling_stats(
    _tenant: TenantDep, poller: CallPollerDep, inbound: InboundSyncDep
) -> PollingStats:
    stats = poller.get_stats()
    stats.inbound_polling_active = inbound.running
    stats.processed_inbound_count = inbound.processed_count
    return stats


@router.get("/calls/{call_id}", response_model=Call)
async def get_call(call_id: str, tenant: TenantDep, store: CallStoreDep) -> Call:
    call = await store.get_call(call_id, tenant.organization_id)
    if call is None:
        raise CallNotFoundError(call_id)
    return call


@router.post("/calls/initiate", response_model=InitiateCallResult)
async def initiate_call(
    request: InitiateCallRequest,
    tenant: TenantDep,
    dialer: DialerDep,
) -> InitiateCallResult:
    return await dialer.initiate_call(
        tenant.organization_id,
        request.agent_id,
        request.recipient_phone,
        contact_name=request.contact_name,
        lead_id=request.lead_id,
    )


@router.post("/calls/{call_id}/stop", response_model=StopCallResult)
async def stop_call(call_id: str, tenant: TenantDep, dialer: DialerDep) -> StopCallResult:
    call = await dialer.stop_call(tenant.organization_id, call_id)
    return StopCallResult(success=True, call=call)


@router.get("/dashboard/metrics", response_model=DashboardMetrics)
async def dashboard_metrics(tenant: TenantDep, store: CallStoreDep) -> DashboardMetrics:
    return await store.get_dashboard_metrics(tenant.organization_id)


@router.get("/organizations/{organizationId}/metrics", response_model=DashboardMetrics)
async def organization_metrics(
    organizationId: str,  # noqa: N803 - checked by the isolation guard
    tenant: TenantDep,
    store: CallStoreDep,
) -> DashboardMetrics:
    return await store.get_dashboard_metrics(tenant.organization_id)
