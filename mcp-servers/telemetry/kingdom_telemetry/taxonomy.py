"""Event taxonomy: the closed set of kinds and the boundary validation rule."""

import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from .models import ANONYMOUS_USER_ID, EventKind, IngestFailure, RejectedEvent, ValidEvent

KNOWN_KINDS = frozenset(k.value for k in EventKind)


def parse_kind(value: Any) -> Optional[EventKind]:
    """Map a raw kind string to an EventKind, or None if it is not recognised."""
    if isinstance(value, EventKind):
        return value
    if not isinstance(value, str) or value not in KNOWN_KINDS:
        return None
    return EventKind(value)


def resolve_user_id(identity: Optional[str]) -> str:
    """Resolve the originating actor. Missing identity never blocks telemetry."""
    if identity is None:
        return ANONYMOUS_USER_ID
    identity = str(identity).strip()
    return identity or ANONYMOUS_USER_ID


def validate(
    kind: Any,
    payload: Any,
    user_id: Optional[str] = None,
) -> Union[ValidEvent, RejectedEvent]:
    """Check a candidate event against the taxonomy.

    Args:
        kind: Raw kind from the client; must be one of EventKind's values.
        payload: String-keyed mapping. May be empty but must be present.
        user_id: Identity resolved by the caller; blank means anonymous.

    Returns:
        ValidEvent with a private copy of the payload, or RejectedEvent naming
        the failure. The kind is checked before the payload. A payload json
        cannot encode (cycles, non-scalar keys) is MissingPayload.
    """
    event_kind = parse_kind(kind)
    if event_kind is None:
        return RejectedEvent(
            failure=IngestFailure.INVALID_KIND,
            detail=f"Unknown event kind: {kind!r}",
        )

    if payload is None:
        return RejectedEvent(failure=IngestFailure.MISSING_PAYLOAD, detail="Payload is required")
    if not isinstance(payload, Mapping):
        return RejectedEvent(
            failure=IngestFailure.MISSING_PAYLOAD,
            detail=f"Payload must be an object, got {type(payload).__name__}",
        )

    try:
        # Private JSON-shaped copy; values json cannot encode are kept as str()
        snapshot = json.loads(json.dumps({str(k): v for k, v in payload.items()}, default=str))
    except (TypeError, ValueError) as exc:
        return RejectedEvent(
            failure=IngestFailure.MISSING_PAYLOAD,
            detail=f"Payload is not JSON-serializable: {exc}",
        )

    return ValidEvent(
        kind=event_kind,
        payload=snapshot,
        user_id=resolve_user_id(user_id),
    )
