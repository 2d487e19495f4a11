"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..app_state import TelemetryState
from ..deps import get_telemetry_state, run_blocking

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check(state: TelemetryState = Depends(get_telemetry_state)) -> dict:
    """Check gateway health and event store reachability."""
    store_ok = await run_blocking(state.store.ping)
    return {
        "status": "ok" if store_ok else "degraded",
        "version": "0.1.0",
        "store": "reachable" if store_ok else "unavailable",
        "consentRecheck": state.config.enforce_consent,
    }
