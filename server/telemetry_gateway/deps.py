"""FastAPI dependencies for pipeline state and caller identity."""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable

from fastapi import Header, Request

from kingdom_telemetry.ingestion import IngestionGateway
from kingdom_telemetry.models import USER_ID_HEADER
from kingdom_telemetry.query import QuerySurface
from kingdom_telemetry.taxonomy import resolve_user_id

from .app_state import TelemetryState


def get_telemetry_state(request: Request) -> TelemetryState:
    return request.app.state.telemetry


def get_gateway(request: Request) -> IngestionGateway:
    return get_telemetry_state(request).gateway


def get_query_surface(request: Request) -> QuerySurface:
    return get_telemetry_state(request).query


async def get_user_id(
    user_id: str | None = Header(None, alias=USER_ID_HEADER),
) -> str:
    """Identity resolved by the calling surface; anonymous when absent."""
    return resolve_user_id(user_id)


async def run_blocking(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a blocking store call on the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
