import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from callsync.dependencies import WebhookDep
from callsync.schemas.bolna import CallStatusWebhook
from callsync.schemas.responses import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks")


@router.post("/bolna/call-status", response_model=WebhookAck)
async def bolna_call_status(payload: CallStatusWebhook, service: WebhookDep) -> WebhookAck:
    logger.info("Bolna webhook received for %s (status=%s)", payload.id, payload.status)
    updated = await service.handle_call_status(payload)
    if updated is None:
        return JSONResponse(status_code=202, content={"received": True, "matched": False})
    return WebhookAck()
