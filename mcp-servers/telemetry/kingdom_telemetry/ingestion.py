"""Ingestion gateway: validate, re-check consent, and hand off to the store.

Telemetry must never get in the way of the user action that produced it, so
``submit`` reports every failure as a typed IngestResult instead of raising.
There are no retries: an event lost to a store outage stays lost.
"""

from __future__ import annotations

import logging
from typing import Any

from . import consent, taxonomy
from .consent import Preferences
from .errors import StoreUnavailableError
from .models import IngestFailure, IngestResult, RejectedEvent
from .store import EventStore

logger = logging.getLogger(__name__)


class IngestionGateway:
    """Accepts one submission at a time; holds no state besides the store."""

    def __init__(self, store: EventStore, enforce_consent: bool = True) -> None:
        self.store = store
        self.enforce_consent = enforce_consent

    def submit(
        self,
        kind: Any,
        payload: Any,
        user_id: str | None = None,
        preferences: Preferences = None,
    ) -> IngestResult:
        """Submit one candidate event.

        Args:
            kind: Raw event kind from the client.
            payload: Event payload mapping; an empty mapping is allowed.
            user_id: Identity resolved from the request context, if any.
            preferences: Consent snapshot forwarded by the client, if any.

        Returns:
            IngestResult with the new event id, or the failing stage.
        """
        checked = taxonomy.validate(kind, payload, user_id)
        if isinstance(checked, RejectedEvent):
            logger.warning("Rejected submission (%s): %s", checked.failure.value, checked.detail)
            return IngestResult.rejected(checked.failure, "validation", checked.detail)

        if self.enforce_consent and not consent.allowed(preferences):
            logger.info("Discarded %s event: consent denied", checked.kind.value)
            return IngestResult.rejected(IngestFailure.CONSENT_DENIED, "consent")

        try:
            event_id = self.store.append(checked)
        except StoreUnavailableError as exc:
            logger.error("Event store unavailable, dropping %s event: %s", checked.kind.value, exc)
            return IngestResult.rejected(IngestFailure.STORE_UNAVAILABLE, "store", str(exc))

        return IngestResult.ok(event_id)
