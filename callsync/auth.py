import jwt

from callsync.exceptions.custom import UnauthenticatedError


def create_access_token(user_id: str, secret: str, algorithm: str = "HS256", **claims) -> str:
    return jwt.encode({"sub": user_id, **claims}, secret, algorithm=algorithm)


def resolve_user_id(authorization: str | None, secret: str, algorithm: str = "HS256") -> str:
    """Return the user id (``sub`` claim) carried by a ``Bearer`` token."""
    if not authorization:
        raise UnauthenticatedError("Authorization header missing")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthenticatedError("Invalid authorization header format")

    return decode_user_id(parts[1], secret, algorithm)


def decode_user_id(token: str, secret: str, algorithm: str = "HS256") -> str:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError as exc:
        raise UnauthenticatedError("Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthenticatedError("Token has no subject")
    return user_id
