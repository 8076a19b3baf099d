"""Multi-tenant isolation guard.

Rejects requests whose body, query string or path parameters name an
organization other than the caller's own, before any handler touches
tenant-scoped data. Handlers must scope reads and writes with
``TenantContext.organization_id`` and never with a client-supplied id.
"""

import json
import logging
from dataclasses import dataclass

from fastapi import Request

from callsync.auth import resolve_user_id
from callsync.exceptions.custom import (
    TenantMismatchError,
    UnauthenticatedError,
    UserNotFoundError,
)
from callsync.schemas.directory import User

logger = logging.getLogger(__name__)

ORGANIZATION_KEYS = ("organizationId", "organization_id")


@dataclass(frozen=True)
class TenantContext:
    user: User

    @property
    def organization_id(self) -> str:
        return self.user.organization_id


def _declared_ids(container) -> list[str]:
    if not container:
        return []
    ids = []
    for key in ORGANIZATION_KEYS:
        # Query strings may repeat a key; every value is checked.
        if hasattr(container, "getlist"):
            values = container.getlist(key)
        else:
            values = [container.get(key)]
        ids.extend(str(v) for v in values if v)
    return ids


async def _json_body(request: Request) -> dict | None:
    if request.method in ("GET", "HEAD", "DELETE", "OPTIONS"):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def check_organization(
    organization_id: str, sources: dict[str, list[str]]
) -> None:
    """Raise TenantMismatchError if any declared id differs from the caller's."""
    for source, declared in sources.items():
        for requested in declared:
            if requested != organization_id:
                logger.warning(
                    "Blocked attempt to access organization %s (user's org: %s) from %s",
                    requested,
                    organization_id,
                    source,
                )
                raise TenantMismatchError(requested, organization_id, source)


async def verify_organization_isolation(request: Request) -> TenantContext:
    settings = request.app.state.settings
    users = request.app.state.user_store

    try:
        user_id = resolve_user_id(
            request.headers.get("Authorization"), settings.jwt_secret, settings.jwt_algorithm
        )
    except UnauthenticatedError as exc:
        logger.warning("Rejected request to %s: %s", request.url.path, exc.message)
        raise

    user = await users.get_user(user_id)
    if user is None:
        logger.warning("Rejected request to %s: unknown user %s", request.url.path, user_id)
        raise UserNotFoundError(user_id)

    check_organization(
        user.organization_id,
        {
            "body": _declared_ids(await _json_body(request)),
            "query": _declared_ids(request.query_params),
            "params": _declared_ids(request.path_params),
        },
    )

    request.state.organization_id = user.organization_id
    return TenantContext(user=user)
