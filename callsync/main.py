import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from callsync.config import Settings
from callsync.exceptions.custom import (
    AgentNotFoundError,
    BolnaError,
    CallNotFoundError,
    RateLimitError,
    TenantMismatchError,
    UnauthenticatedError,
    UserNotFoundError,
)
from callsync.exceptions.handlers import (
    agent_not_found_error_handler,
    bolna_error_handler,
    call_not_found_error_handler,
    rate_limit_error_handler,
    tenant_mismatch_error_handler,
    unauthenticated_error_handler,
    user_not_found_error_handler,
)
from callsync.routers.calls import router as calls_router
from callsync.routers.realtime import router as realtime_router
from callsync.routers.webhooks import router as webhooks_router
from callsync.services.bolna import BolnaService
from callsync.services.call_poller import CallPoller
from callsync.services.call_store import CallStore
from callsync.services.dialer import DialerService
from callsync.services.directory import AgentStore, UserStore, load_directory_seed
from callsync.services.events import EventBus
from callsync.services.inbound_sync import InboundCallSync
from callsync.services.webhooks import CallWebhookService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not settings.bolna_api_key:
        logger.warning("BOLNA_API_KEY is not set; Bolna requests will be rejected")

    async with httpx.AsyncClient(timeout=30.0) as client:
        bolna = BolnaService(client, settings.bolna_api_key, settings.bolna_api_url)

        users = UserStore()
        agents = AgentStore()
        if settings.directory_seed_file:
            load_directory_seed(settings.directory_seed_file, users, agents)
        store = CallStore(agents)
        bus = EventBus()

        poller = CallPoller(
            store,
            bolna,
            bus,
            interval=settings.poll_interval_seconds,
            max_attempts=settings.max_poll_attempts,
            max_consecutive_errors=settings.max_consecutive_poll_errors,
        )

        app.state.settings = settings
        app.state.user_store = users
        app.state.agent_store = agents
        app.state.call_store = store
        app.state.event_bus = bus
        app.state.call_poller = poller
        app.state.webhook_service = CallWebhookService(store, bus)
        app.state.dialer_service = DialerService(store, agents, bolna, poller, bus)

        inbound = InboundCallSync(
            store,
            agents,
            bolna,
            bus,
            interval=settings.inbound_poll_interval_seconds,
            page_size=settings.inbound_executions_page_size,
        )
        app.state.inbound_sync = inbound
        if settings.inbound_polling_enabled:
            inbound.start()

        try:
            yield
        finally:
            await inbound.stop()
            await poller.stop_all()


app = FastAPI(title="callsync", lifespan=lifespan)

app.add_exception_handler(BolnaError, bolna_error_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)
app.add_exception_handler(UnauthenticatedError, unauthenticated_error_handler)
app.add_exception_handler(UserNotFoundError, user_not_found_error_handler)
app.add_exception_handler(TenantMismatchError, tenant_mismatch_error_handler)
app.add_exception_handler(CallNotFoundError, call_not_found_error_handler)
app.add_exception_handler(AgentNotFoundError, agent_not_found_error_handler)

app.include_router(calls_router)
app.include_router(webhooks_router)
app.include_router(realtime_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
