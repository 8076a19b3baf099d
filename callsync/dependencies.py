from typing import Annotated

from fastapi import Depends, Request

from callsync.isolation import TenantContext, verify_organization_isolation
from callsync.services.call_poller import CallPoller
from callsync.services.call_store import CallStore
from callsync.services.dialer import DialerService
from callsync.services.inbound_sync import InboundCallSync
from callsync.services.webhooks import CallWebhookService


def get_call_store(request: Request) -> CallStore:
    return request.app.state.call_store


def get_call_poller(request: Request) -> CallPoller:
    return request.app.state.call_poller


def get_dialer_service(request: Request) -> DialerService:
    return request.app.state.dialer_service


def get_webhook_service(request: Request) -> CallWebhookService:
    return request.app.state.webhook_service


def get_inbound_sync(request: Request) -> InboundCallSync:
    return request.app.state.inbound_sync


CallStoreDep = Annotated[CallStore, Depends(get_call_store)]
CallPollerDep = Annotated[CallPoller, Depends(get_call_poller)]
DialerDep = Annotated[DialerService, Depends(get_dialer_service)]
WebhookDep = Annotated[CallWebhookService, Depends(get_webhook_service)]
InboundSyncDep = Annotated[InboundCallSync, Depends(get_inbound_sync)]
TenantDep = Annotated[TenantContext, Depends(verify_organization_isolation)]
