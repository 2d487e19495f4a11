"""Tests for the operator MCP tool bodies."""

from kingdom_telemetry.config import resolve_data_dir
from kingdom_telemetry.models import EventKind, ValidEvent
from kingdom_telemetry.query import QuerySurface
from kingdom_telemetry.server import recent_events_report, status_report
from kingdom_telemetry.store import EventStore


def test_recent_events_report(tmp_path):
    store = EventStore(tmp_path / "ops.db")
    store.append(ValidEvent(kind=EventKind.SEARCH_QUERY, payload={"q": "joy"}, user_id="u1"))
    store.append(ValidEvent(kind=EventKind.FAQ_QUESTION, payload={"q": "tiers?"}, user_id="u2"))

    report = recent_events_report(QuerySurface(store), limit=10)
    assert report["count"] == 2
    first = report["events"][0]
    assert set(first) == {"id", "userId", "kind", "payload", "acceptedAt", "sequence"}
    assert first["kind"] == "FAQ_QUESTION"

    filtered = recent_events_report(QuerySurface(store), kind="SEARCH_QUERY")
    assert [e["userId"] for e in filtered["events"]] == ["u1"]


def test_recent_events_report_unknown_kind(tmp_path):
    report = recent_events_report(QuerySurface(EventStore(tmp_path / "ops.db")), kind="BOGUS")
    assert report["count"] == 0
    assert "Unknown event kind" in report["error"]


def test_status_report(tmp_path):
    store = EventStore(tmp_path / "ops.db")
    store.append(ValidEvent(kind=EventKind.UPLOAD_METADATA, payload={"bytes": 10}))
    status = status_report(QuerySurface(store))
    assert status["available"] is True
    assert status["total_events"] == 1
    assert status["by_kind"]["UPLOAD_METADATA"] == 1


def test_status_report_when_store_unreachable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    status = status_report(QuerySurface(EventStore(blocker / "ops.db")))
    assert status["available"] is False
    assert "error" in status


def test_server_opens_the_shared_store_file():
    from kingdom_telemetry import server
    from kingdom_telemetry.config import store_path

    assert server.store.db_path == store_path(server._config, server.DATA_DIR)
    assert server.DATA_DIR == resolve_data_dir()
