"""Operator API key authentication for the admin endpoints."""

from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .deps import get_telemetry_state

_bearer = HTTPBearer(auto_error=False)


async def require_operator(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Validate the Bearer token against the configured operator API key."""
    expected = get_telemetry_state(request).config.api_key
    if credentials and secrets.compare_digest(credentials.credentials, expected):
        return

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing API key",
        headers={"WWW-Authenticate": "Bearer"},
    )
