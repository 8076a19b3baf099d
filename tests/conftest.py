import httpx
import pytest
from httpx import ASGITransport

from callsync.auth import create_access_token
from callsync.schemas.directory import Agent, User

JWT_SECRET = "test-secret"


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("BOLNA_API_KEY", "test-bolna-key")
    monkeypatch.setenv("INBOUND_POLLING_ENABLED", "false")


@pytest.fixture
async def app(mock_env):
    from callsync.main import app, lifespan

    async with lifespan(app):
        app.state.user_store.add_user(User(id="user-a", organization_id="org-a"))
        app.state.user_store.add_user(User(id="user-b", organization_id="org-b"))
        app.state.agent_store.add_agent(
            Agent(
                id="agent-1",
                organization_id="org-a",
                name="Sales Bot",
                bolna_agent_id="bolna-agent-1",
                phone_number="+911111111111",
            )
        )
        yield app


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "user-a") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, JWT_SECRET)}"}

    return _headers
