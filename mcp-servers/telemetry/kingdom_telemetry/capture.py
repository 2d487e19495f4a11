"""Capture adapter: fire-and-forget event submission for client surfaces.

Capture never raises. If consent is denied the request is not made at all; if
the gateway is slow, unreachable, or rejects the event, the caller gets False
and carries on. The user action that triggered the event is unaffected.

Usage:
    client = CaptureClient("https://telemetry.example.com")
    client.capture(
        EventKind.FEATURE_USAGE,
        {"featureName": "upload"},
        preferences=settings,
        user_id=session.user_id,
    )
    client.search_query("grace", result_count=12, user_id=session.user_id)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from . import consent
from .consent import Preferences
from .models import USER_ID_HEADER, EventKind

logger = logging.getLogger(__name__)

INGEST_PATH = "/api/events"
DEFAULT_TIMEOUT = 2.0


def _build_request(
    kind: EventKind | str,
    payload: dict[str, Any],
    preferences: Preferences,
    user_id: str | None,
) -> tuple[dict, dict]:
    body: dict[str, Any] = {
        "kind": kind.value if isinstance(kind, EventKind) else kind,
        "payload": payload,
    }
    prefs = consent.snapshot(preferences)
    if prefs is not None:
        body["preferences"] = prefs
    headers = {USER_ID_HEADER: user_id} if user_id else {}
    return body, headers


def _was_accepted(response: httpx.Response) -> bool:
    if not response.is_success:
        logger.debug("Telemetry rejected with HTTP %d", response.status_code)
        return False
    try:
        return response.json().get("accepted") is True
    except (ValueError, AttributeError):
        return False


def _with(payload: dict[str, Any], **optional: Any) -> dict[str, Any]:
    payload.update({k: v for k, v in optional.items() if v is not None})
    return payload


class _KindHelpers:
    """One helper per event kind, each delegating to ``capture``.

    On AsyncCaptureClient the helpers return the ``capture`` coroutine, so
    callers await them like ``capture`` itself. Extra keyword arguments are
    merged into the payload.
    """

    def feature_used(
        self,
        feature_name: str,
        duration_ms: int | None = None,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = _with({"featureName": feature_name, **properties}, durationMs=duration_ms)
        return self.capture(EventKind.FEATURE_USAGE, payload, preferences, user_id)

    def content_generated(
        self,
        content_type: str,
        success: bool = True,
        platform: str | None = None,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = _with({"contentType": content_type, "success": success, **properties}, platform=platform)
        return self.capture(EventKind.CONTENT_GENERATION, payload, preferences, user_id)

    def upload_metadata(
        self,
        file_type: str,
        size_bytes: int | None = None,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = _with({"fileType": file_type, **properties}, sizeBytes=size_bytes)
        return self.capture(EventKind.UPLOAD_METADATA, payload, preferences, user_id)

    def search_query(
        self,
        query: str,
        result_count: int | None = None,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = _with({"query": query, **properties}, resultCount=result_count)
        return self.capture(EventKind.SEARCH_QUERY, payload, preferences, user_id)

    def faq_question(
        self,
        question: str,
        category: str | None = None,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = _with({"question": question, **properties}, category=category)
        return self.capture(EventKind.FAQ_QUESTION, payload, preferences, user_id)

    def faith_mode_toggled(
        self,
        enabled: bool,
        preferences: Preferences = None,
        user_id: str | None = None,
        **properties: Any,
    ):
        payload = {"enabled": enabled, **properties}
        return self.capture(EventKind.FAITH_MODE_EVENT, payload, preferences, user_id)


class CaptureClient(_KindHelpers):
    """Blocking capture client with a short timeout."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def capture(
        self,
        kind: EventKind | str,
        payload: dict[str, Any],
        preferences: Preferences = None,
        user_id: str | None = None,
    ) -> bool:
        """Send one event if consent allows. Returns True only if it was accepted."""
        if not consent.allowed(preferences):
            return False
        try:
            body, headers = _build_request(kind, payload, preferences, user_id)
            response = self._client.post(INGEST_PATH, json=body, headers=headers)
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            logger.debug("Telemetry capture failed: %s", exc)
            return False
        return _was_accepted(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CaptureClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncCaptureClient(_KindHelpers):
    """Capture client for async surfaces. Same contract as CaptureClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def capture(
        self,
        kind: EventKind | str,
        payload: dict[str, Any],
        preferences: Preferences = None,
        user_id: str | None = None,
    ) -> bool:
        if not consent.allowed(preferences):
            return False
        try:
            body, headers = _build_request(kind, payload, preferences, user_id)
            response = await self._client.post(INGEST_PATH, json=body, headers=headers)
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            logger.debug("Telemetry capture failed: %s", exc)
            return False
        return _was_accepted(response)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncCaptureClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
