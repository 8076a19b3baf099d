import json
import logging
from pathlib import Path

from pydantic import BaseModel

from callsync.schemas.directory import Agent, User

logger = logging.getLogger(__name__)


class DirectorySeed(BaseModel):
    users: list[User] = []
    agents: list[Agent] = []


class UserStore:
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def add_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)


class AgentStore:
    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}

    def add_agent(self, agent: Agent) -> Agent:
        self._agents[agent.id] = agent
        return agent

    async def get_agent(self, agent_id: str, organization_id: str) -> Agent | None:
        agent = self._agents.get(agent_id)
        if agent is None or agent.organization_id != organization_id:
            return None
        return agent

    async def list_agents(self, organization_id: str) -> list[Agent]:
        return [a for a in self._agents.values() if a.organization_id == organization_id]

    async def list_vendor_agents(self) -> list[Agent]:
        """All agents, across organizations, that are registered with Bolna."""
        return [a for a in self._agents.values() if a.bolna_agent_id]


def load_directory_seed(path: str | Path, users: UserStore, agents: AgentStore) -> DirectorySeed:
    """Load users and agents from a JSON file shaped like ``DirectorySeed``."""
    seed = DirectorySeed(**json.loads(Path(path).read_text(encoding="utf-8")))
    for user in seed.users:
        users.add_user(user)
    for agent in seed.agents:
        agents.add_agent(agent)
    logger.info(
        "Loaded %d users and %d agents from %s", len(seed.users), len(seed.agents), path
    )
    return seed
