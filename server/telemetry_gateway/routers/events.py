"""Ingestion endpoint: accepts interaction events from client surfaces."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from kingdom_telemetry.ingestion import IngestionGateway
from kingdom_telemetry.models import EventSubmission, IngestFailure

from ..deps import get_gateway, get_user_id, run_blocking

router = APIRouter(prefix="/api/events", tags=["events"])

# Consent denial is not a client error: the event is simply not recorded.
_FAILURE_STATUS = {
    IngestFailure.INVALID_KIND: 422,
    IngestFailure.MISSING_PAYLOAD: 422,
    IngestFailure.CONSENT_DENIED: 202,
    IngestFailure.STORE_UNAVAILABLE: 503,
}


@router.post("", status_code=202, response_model=None)
async def ingest_event(
    body: EventSubmission,
    user_id: str = Depends(get_user_id),
    gateway: IngestionGateway = Depends(get_gateway),
):
    """Submit one interaction event. Storage errors are never echoed back."""
    result = await run_blocking(
        gateway.submit,
        body.kind,
        body.payload,
        user_id=user_id,
        preferences=body.preferences,
    )
    if result.accepted:
        return {"accepted": True, "id": result.event_id}

    content = {"accepted": False, "error": result.failure.value}
    if result.stage == "validation":
        content["detail"] = result.detail
    return JSONResponse(status_code=_FAILURE_STATUS[result.failure], content=content)
