import logging

from callsync.mappers.call_updates import build_webhook_update
from callsync.schemas.bolna import CallStatusWebhook
from callsync.schemas.call import Call
from callsync.services.call_store import CallStore
from callsync.services.events import EventSink

logger = logging.getLogger(__name__)


class CallWebhookService:
    """Applies Bolna call-status callbacks to stored calls.

    Runs independently of the poller; both write through the store's latched
    update so a late webhook cannot revive a finished call.
    """

    def __init__(self, store: CallStore, events: EventSink) -> None:
        self._store = store
        self._events = events

    async def _find_call(self, payload: CallStatusWebhook) -> Call | None:
        recipient = payload.context_details.recipient_data if payload.context_details else None
        if recipient and recipient.callId and recipient.organizationId:
            call = await self._store.get_call(recipient.callId, recipient.organizationId)
            if call is not None:
                return call

        if payload.id:
            return await self._store.get_call_by_provider_id(payload.id)
        return None

    async def handle_call_status(self, payload: CallStatusWebhook) -> Call | None:
        """Returns the updated call, or None when no stored call matches."""
        call = await self._find_call(payload)
        if call is None:
            logger.warning("No call matches Bolna webhook for %s", payload.id)
            return None

        update = build_webhook_update(call, payload)
        logger.info(
            "Bolna webhook for call %s: %s -> %s (raw status %s)",
            call.id,
            call.status,
            update.status,
            payload.status,
        )

        updated = await self._store.update_call(call.id, call.organization_id, update)
        if updated is None:
            return None

        self._events.call_updated(call.organization_id, updated)
        metrics = await self._store.get_dashboard_metrics(call.organization_id)
        self._events.metrics_updated(call.organization_id, metrics)
        return updated
