import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from callsync.auth import decode_user_id
from callsync.exceptions.custom import UnauthenticatedError
from callsync.services.events import Event

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue[Event]) -> None:
    while True:
        event = await queue.get()
        await websocket.send_json(event.model_dump(mode="json"))


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Clients never send anything meaningful; reading only surfaces the close.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def events_socket(websocket: WebSocket, token: str | None = None) -> None:
    """Stream call and metrics events for the caller's organization."""
    settings = websocket.app.state.settings
    users = websocket.app.state.user_store
    bus = websocket.app.state.event_bus

    try:
        user_id = decode_user_id(token or "", settings.jwt_secret, settings.jwt_algorithm)
    except UnauthenticatedError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user = await users.get_user(user_id)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    org_id = user.organization_id
    queue = bus.subscribe(org_id)
    tasks: list[asyncio.Task] = []
    try:
        await websocket.accept()
        logger.info("Realtime client joined org:%s", org_id)
        tasks = [
            asyncio.create_task(_forward_events(websocket, queue)),
            asyncio.create_task(_wait_for_disconnect(websocket)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Realtime connection for org:%s failed: %s", org_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        bus.unsubscribe(org_id, queue)
        logger.info("Realtime client left org:%s", org_id)
        await asyncio.gather(*tasks, return_exceptions=True)
