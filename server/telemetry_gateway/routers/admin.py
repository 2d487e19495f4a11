"""Operator endpoints: read-only access to the event log."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from kingdom_telemetry.errors import StoreUnavailableError
from kingdom_telemetry.models import MAX_RECENT
from kingdom_telemetry.query import QuerySurface
from kingdom_telemetry.taxonomy import parse_kind

from ..auth import require_operator
from ..deps import get_query_surface, run_blocking

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_operator)])


def _unavailable(exc: StoreUnavailableError) -> HTTPException:
    logger.error("Admin query failed: %s", exc)
    return HTTPException(status_code=503, detail="Event store unavailable")


@router.get("/events")
async def list_recent_events(
    limit: int = Query(MAX_RECENT, ge=1, le=MAX_RECENT),
    kind: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    query: QuerySurface = Depends(get_query_surface),
) -> dict:
    """Most recent accepted events, newest first."""
    event_kind = None
    if kind:
        event_kind = parse_kind(kind)
        if event_kind is None:
            raise HTTPException(status_code=400, detail=f"Unknown event kind: {kind}")

    try:
        events = await run_blocking(query.recent, limit, kind=event_kind, user_id=user_id)
    except StoreUnavailableError as exc:
        raise _unavailable(exc)

    return {
        "events": [e.model_dump(mode="json") for e in events],
        "count": len(events),
    }


@router.get("/events/{event_id}")
async def get_event(event_id: str, query: QuerySurface = Depends(get_query_surface)) -> dict:
    """Single accepted event by id."""
    try:
        event = await run_blocking(query.get, event_id)
    except StoreUnavailableError as exc:
        raise _unavailable(exc)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event not found: {event_id}")
    return {"event": event.model_dump(mode="json")}


@router.get("/stats")
async def get_stats(query: QuerySurface = Depends(get_query_surface)) -> dict:
    """Event totals per kind and the time span of the log."""
    try:
        return await run_blocking(query.stats)
    except StoreUnavailableError as exc:
        raise _unavailable(exc)
