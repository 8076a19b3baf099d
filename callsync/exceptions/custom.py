class BolnaError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(Exception):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Rate limit exceeded for {service}")


class UnauthenticatedError(Exception):
    def __init__(self, message: str = "Unauthorized"):
        self.message = message
        super().__init__(message)


class UserNotFoundError(Exception):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class TenantMismatchError(Exception):
    def __init__(self, requested_id: str, organization_id: str, source: str):
        self.requested_id = requested_id
        self.organization_id = organization_id
        self.source = source
        super().__init__(
            f"Organization {requested_id} does not match caller organization"
        )


class CallNotFoundError(Exception):
    def __init__(self, call_id: str):
        self.call_id = call_id
        super().__init__(f"Call {call_id} not found")


class AgentNotFoundError(Exception):
    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} not found")
