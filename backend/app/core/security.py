"""Bearer token authentication for API routes."""
from __future__ import annotations

import logging
from uuid import UUID

import jwt
from fastapi import Header, HTTPException, status

from app.core.config import settings
from app.core.context import user_id_ctx_var

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> UUID:
    """Validate an HS256 access token and return its subject as a UUID."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected access token: %s", exc)
        raise _unauthorized("Invalid token") from exc

    subject = claims.get("sub")
    try:
        return UUID(str(subject))
    except (TypeError, ValueError) as exc:
        raise _unauthorized("Invalid token subject") from exc


async def get_current_user_id(authorization: str | None = Header(default=None)) -> UUID:
    """FastAPI dependency resolving the authenticated user id."""
    if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
        raise _unauthorized("Unauthorized")
    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise _unauthorized("Unauthorized")
    user_id = decode_access_token(token)
    user_id_ctx_var.set(str(user_id))
    return user_id
