from pydantic import BaseModel


class User(BaseModel):
    id: str
    organization_id: str
    email: str | None = None
    name: str | None = None


class Agent(BaseModel):
    id: str
    organization_id: str
    name: str
    bolna_agent_id: str | None = None
    status: str = "active"
    phone_number: str | None = None
