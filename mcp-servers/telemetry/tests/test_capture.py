"""Tests for the capture clients."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from kingdom_telemetry.capture import INGEST_PATH, AsyncCaptureClient, CaptureClient
from kingdom_telemetry.models import USER_ID_HEADER, EventKind


class _Recorder:
    """MockTransport handler that records requests and replies with a fixed response."""

    def __init__(self, status_code: int = 202, body: dict | None = None, error: Exception | None = None):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body if body is not None else {"accepted": True, "id": "evt-1"}
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)


def _client(handler: _Recorder) -> CaptureClient:
    return CaptureClient("http://telemetry.test", transport=httpx.MockTransport(handler))


class TestCaptureClient:
    def test_accepted_event(self):
        handler = _Recorder()
        with _client(handler) as client:
            ok = client.capture(EventKind.FEATURE_USAGE, {"featureName": "upload"}, user_id="u1")

        assert ok is True
        assert len(handler.requests) == 1
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == INGEST_PATH
        assert request.headers[USER_ID_HEADER] == "u1"
        assert json.loads(request.content) == {
            "kind": "FEATURE_USAGE",
            "payload": {"featureName": "upload"},
        }

    def test_denied_consent_sends_nothing(self):
        handler = _Recorder()
        with _client(handler) as client:
            ok = client.capture("SEARCH_QUERY", {"q": "grace"}, preferences={"allowAnonymizedData": False})

        assert ok is False
        assert handler.requests == []

    def test_preference_snapshot_forwarded(self):
        handler = _Recorder()
        with _client(handler) as client:
            client.capture("SEARCH_QUERY", {"q": "grace"}, preferences={"allowAnonymizedData": True})

        body = json.loads(handler.requests[0].content)
        assert body["preferences"] == {"allowAnonymizedData": True}

    def test_anonymous_capture_omits_identity_header(self):
        handler = _Recorder()
        with _client(handler) as client:
            client.capture("FAQ_QUESTION", {})
        assert USER_ID_HEADER not in handler.requests[0].headers

    @pytest.mark.parametrize("status_code", [422, 500, 503])
    def test_rejections_report_false(self, status_code):
        handler = _Recorder(status_code=status_code, body={"accepted": False, "error": "StoreUnavailable"})
        with _client(handler) as client:
            assert client.capture("FEATURE_USAGE", {}) is False

    def test_consent_denied_by_gateway_reports_false(self):
        handler = _Recorder(status_code=202, body={"accepted": False, "error": "ConsentDenied"})
        with _client(handler) as client:
            assert client.capture("FEATURE_USAGE", {}) is False

    def test_network_errors_never_raise(self):
        handler = _Recorder(error=httpx.ConnectError("connection refused"))
        with _client(handler) as client:
            assert client.capture("FEATURE_USAGE", {"featureName": "upload"}) is False

    def test_timeouts_never_raise(self):
        handler = _Recorder(error=httpx.ReadTimeout("too slow"))
        with _client(handler) as client:
            assert client.capture("FEATURE_USAGE", {}) is False

    def test_unserializable_payload_never_raises(self):
        handler = _Recorder()
        with _client(handler) as client:
            assert client.capture("UPLOAD_METADATA", {"blob": object()}) is False
        assert handler.requests == []


class TestAsyncCaptureClient:
    def test_accepted_event(self):
        handler = _Recorder()

        async def _run() -> bool:
            async with AsyncCaptureClient(
                "http://telemetry.test", transport=httpx.MockTransport(handler)
            ) as client:
                return await client.capture(EventKind.CONTENT_GENERATION, {"words": 300}, user_id="u2")

        assert asyncio.run(_run()) is True
        assert handler.requests[0].headers[USER_ID_HEADER] == "u2"

    def test_denied_consent_sends_nothing(self):
        handler = _Recorder()

        async def _run() -> bool:
            async with AsyncCaptureClient(
                "http://telemetry.test", transport=httpx.MockTransport(handler)
            ) as client:
                return await client.capture("FEATURE_USAGE", {}, preferences={"allowAnonymizedData": False})

        assert asyncio.run(_run()) is False
        assert handler.requests == []

    def test_network_errors_never_raise(self):
        handler = _Recorder(error=httpx.ConnectError("connection refused"))

        async def _run() -> bool:
            async with AsyncCaptureClient(
                "http://telemetry.test", transport=httpx.MockTransport(handler)
            ) as client:
                return await client.capture("FEATURE_USAGE", {})

        assert asyncio.run(_run()) is False


class TestKindHelpers:
    @pytest.mark.parametrize(
        "call, kind, payload",
        [
            (lambda c: c.feature_used("upload", duration_ms=40), "FEATURE_USAGE",
             {"featureName": "upload", "durationMs": 40}),
            (lambda c: c.content_generated("sermon", platform="web"), "CONTENT_GENERATION",
             {"contentType": "sermon", "success": True, "platform": "web"}),
            (lambda c: c.upload_metadata("image/png", size_bytes=2048), "UPLOAD_METADATA",
             {"fileType": "image/png", "sizeBytes": 2048}),
            (lambda c: c.search_query("grace", result_count=3), "SEARCH_QUERY",
             {"query": "grace", "resultCount": 3}),
            (lambda c: c.faq_question("What are tiers?"), "FAQ_QUESTION",
             {"question": "What are tiers?"}),
            (lambda c: c.faith_mode_toggled(True, source="settings"), "FAITH_MODE_EVENT",
             {"enabled": True, "source": "settings"}),
        ],
    )
    def test_helper_posts_its_kind(self, call, kind, payload):
        handler = _Recorder()
        with _client(handler) as client:
            assert call(client) is True
        assert json.loads(handler.requests[0].content) == {"kind": kind, "payload": payload}

    def test_helper_respects_consent(self):
        handler = _Recorder()
        with _client(handler) as client:
            ok = client.search_query("grace", preferences={"allowAnonymizedData": False}, user_id="u1")
        assert ok is False
        assert handler.requests == []

    def test_async_helper(self):
        handler = _Recorder()

        async def _run() -> bool:
            async with AsyncCaptureClient(
                "http://telemetry.test", transport=httpx.MockTransport(handler)
            ) as client:
                return await client.feature_used("upload", user_id="u3")

        assert asyncio.run(_run()) is True
        assert handler.requests[0].headers[USER_ID_HEADER] == "u3"
        assert json.loads(handler.requests[0].content)["kind"] == "FEATURE_USAGE"
