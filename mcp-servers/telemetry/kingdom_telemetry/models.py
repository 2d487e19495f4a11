"""Pydantic models for interaction events, submissions, and ingest results."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

ANONYMOUS_USER_ID = "anonymous"

# Request header carrying the identity the calling surface resolved
USER_ID_HEADER = "X-User-Id"

# Operator queries never return more than this many events.
MAX_RECENT = 1000


class EventKind(str, Enum):
    CONTENT_GENERATION = "CONTENT_GENERATION"
    FEATURE_USAGE = "FEATURE_USAGE"
    SEARCH_QUERY = "SEARCH_QUERY"
    FAQ_QUESTION = "FAQ_QUESTION"
    FAITH_MODE_EVENT = "FAITH_MODE_EVENT"
    UPLOAD_METADATA = "UPLOAD_METADATA"


class IngestFailure(str, Enum):
    """Why a submission was not accepted. Values are the wire error names."""
    INVALID_KIND = "InvalidKind"
    MISSING_PAYLOAD = "MissingPayload"
    CONSENT_DENIED = "ConsentDenied"
    STORE_UNAVAILABLE = "StoreUnavailable"


class UserPreferences(BaseModel):
    """Settings snapshot a client forwards with its submission."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    allow_anonymized_data: Optional[bool] = Field(default=None, alias="allowAnonymizedData")


class ValidEvent(BaseModel):
    """A submission that passed taxonomy validation and awaits persistence."""
    kind: EventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    user_id: str = ANONYMOUS_USER_ID


class RejectedEvent(BaseModel):
    failure: IngestFailure
    detail: str = ""


class InteractionEvent(BaseModel):
    """An accepted, immutable entry in the event log."""
    model_config = ConfigDict(frozen=True)

    id: str
    userId: str
    kind: EventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    acceptedAt: str
    sequence: int


class EventSubmission(BaseModel):
    """Body of POST /api/events.

    ``kind`` is left untyped so unknown or non-string kinds reach the
    taxonomy check and come back as InvalidKind instead of a generic schema
    error.
    """
    kind: Optional[Any] = None
    payload: Optional[Any] = None
    preferences: Optional[UserPreferences] = None


class IngestResult(BaseModel):
    accepted: bool
    event_id: Optional[str] = None
    failure: Optional[IngestFailure] = None
    stage: Optional[str] = None  # validation, consent, store
    detail: str = ""

    @classmethod
    def ok(cls, event_id: str) -> "IngestResult":
        return cls(accepted=True, event_id=event_id)

    @classmethod
    def rejected(cls, failure: IngestFailure, stage: str, detail: str = "") -> "IngestResult":
        return cls(accepted=False, failure=failure, stage=stage, detail=detail)
