from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tubely.errors import AuthenticationError

from .config import Settings


security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    user_id: str


def _decode_token(token: str, settings: Settings) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.secrets.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Couldn't validate JWT", cause=exc) from exc
    return payload


def authenticate(credentials: Optional[HTTPAuthorizationCredentials], settings: Settings) -> AuthContext:
    """Resolve the bearer credentials to the calling user or raise ``AuthenticationError``."""
    if not credentials:
        raise AuthenticationError("Couldn't find JWT")

    payload = _decode_token(credentials.credentials, settings)
    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Couldn't validate JWT")
    return AuthContext(user_id=str(user_id))


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthContext:
    settings: Settings = request.app.state.settings
    try:
        context = authenticate(credentials, settings)
    except AuthenticationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    request.state.auth = context
    return context


__all__ = ["AuthContext", "authenticate", "get_auth_context"]
