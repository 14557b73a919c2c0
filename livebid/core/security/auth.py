from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import jwt, JWTError
from livebid.core.config import settings


def create_access_token(
    user_id: UUID,
    expires_delta: Optional[timedelta] = None,
    scopes: list[str] = ["user"]
) -> dict:
    """
    Issue a JWT for an already authenticated user.

    Login itself lives in the identity service; this helper exists so that
    collaborators and tests can mint tokens the API will accept.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "user_id": str(user_id),
        "scopes": scopes,
        "exp": expire,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
    return {
        "access_token": token,
        "token_type": "bearer",
        "user_id": str(user_id),
    }


def decode_user_id(token: str) -> UUID:
    """Return the user id carried by a token, raising JWTError when it is invalid"""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    user_id = payload.get("user_id")
    if not user_id:
        raise JWTError("Token has no user_id claim")
    try:
        return UUID(user_id)
    except ValueError as e:
        raise JWTError(f"Malformed user_id claim: {user_id}") from e
