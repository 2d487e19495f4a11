"""Telemetry MCP server: read-only operator tools over the event log."""

import os
from typing import Optional

from fastmcp import FastMCP

from .config import CONFIG_FILENAME, load_telemetry_config, resolve_data_dir, store_path
from .errors import StoreUnavailableError
from .query import QuerySurface
from .store import EventStore
from .taxonomy import parse_kind

mcp = FastMCP("Kingdom Telemetry")

# Same data dir and store file as the gateway
DATA_DIR = resolve_data_dir()
_config = load_telemetry_config(DATA_DIR / CONFIG_FILENAME)
store = EventStore(store_path(_config, DATA_DIR), timeout=_config["store_timeout_seconds"])
query = QuerySurface(store, max_recent=_config["max_recent"])


def recent_events_report(
    surface: QuerySurface,
    limit: Optional[int] = None,
    kind: Optional[str] = None,
    user_id: Optional[str] = None,
) -> dict:
    """Shared body of the recent_events tool."""
    event_kind = None
    if kind:
        event_kind = parse_kind(kind)
        if event_kind is None:
            return {"error": f"Unknown event kind: {kind}", "events": [], "count": 0}
    try:
        events = surface.recent(limit, kind=event_kind, user_id=user_id)
    except StoreUnavailableError as exc:
        return {"error": str(exc), "events": [], "count": 0}
    return {
        "events": [e.model_dump(mode="json") for e in events],
        "count": len(events),
    }


def status_report(surface: QuerySurface) -> dict:
    """Shared body of the get_telemetry_status tool."""
    try:
        return {"available": True, **surface.stats()}
    except StoreUnavailableError as exc:
        return {"available": False, "error": str(exc)}


@mcp.tool()
def recent_events(
    limit: Optional[int] = None,
    kind: Optional[str] = None,
    user_id: Optional[str] = None,
) -> dict:
    """List the most recently accepted interaction events, newest first.

    Args:
        limit: Maximum number of events (capped at 1000).
        kind: Optional event kind filter, e.g. FEATURE_USAGE.
        user_id: Optional filter on the originating user.

    Returns:
        {events, count} where each event has id, userId, kind, payload,
        acceptedAt and sequence.
    """
    return recent_events_report(query, limit, kind, user_id)


@mcp.tool()
def get_event(event_id: str) -> dict:
    """Fetch a single accepted event by id."""
    try:
        event = query.get(event_id)
    except StoreUnavailableError as exc:
        return {"error": str(exc)}
    if event is None:
        return {"error": f"Event not found: {event_id}"}
    return {"event": event.model_dump(mode="json")}


@mcp.tool()
def get_telemetry_status() -> dict:
    """Event totals per kind and the time span of the log."""
    return status_report(query)


if __name__ == "__main__":
    mcp.run(transport="sse", port=int(os.environ.get("PORT", "3110")))
