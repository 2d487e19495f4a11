"""SQLite persistence for the append-only interaction event log."""

import json
import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import StoreUnavailableError
from .models import MAX_RECENT, EventKind, InteractionEvent, ValidEvent

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(".kingdom/telemetry.db")
MEMORY_DB = ":memory:"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_ts(ts: datetime) -> str:
    # Fixed width so stored timestamps also sort lexically
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


class EventStore:
    """Append-only, acceptance-ordered event log.

    One connection is shared behind a lock, so appends are serialised and each
    one is a single committed INSERT. ``sequence`` (the rowid) is the total
    order within a store; ``acceptedAt`` is clamped so it never runs backwards
    even if the wall clock does.

    The connection is opened lazily. Any failure to reach the database, or to
    get the lock within ``timeout`` seconds, raises StoreUnavailableError.
    """

    def __init__(
        self,
        db_path: Optional[Union[Path, str]] = None,
        timeout: float = 2.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if db_path is None:
            db_path = DEFAULT_DB_PATH
        self.db_path = db_path if db_path == MEMORY_DB else Path(db_path)
        self.timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        self._last_accepted: Optional[datetime] = None

    # ── Connection ────────────────────────────────────────────────────────

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            conn: Optional[sqlite3.Connection] = None
            try:
                if isinstance(self.db_path, Path):
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=self.timeout,
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                self._init_db(conn)
            except (sqlite3.Error, OSError) as exc:
                if conn is not None:
                    conn.close()
                raise StoreUnavailableError(f"Cannot open event store at {self.db_path}: {exc}") from exc
            self._conn = conn
        return self._conn

    def _init_db(self, conn: sqlite3.Connection) -> None:
        if self.db_path != MEMORY_DB:
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=FULL")
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS interaction_events (
                sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT UNIQUE NOT NULL,
                user_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                payload TEXT NOT NULL,
                accepted_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_interaction_events_kind
                ON interaction_events(kind);
            CREATE INDEX IF NOT EXISTS idx_interaction_events_user
                ON interaction_events(user_id);
            """
        )
        conn.commit()

        # Resume the acceptedAt watermark from an existing log
        row = conn.execute(
            "SELECT accepted_at FROM interaction_events ORDER BY sequence DESC LIMIT 1"
        ).fetchone()
        if row:
            self._last_accepted = datetime.fromisoformat(row["accepted_at"])

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self.timeout):
            raise StoreUnavailableError(f"Event store busy for more than {self.timeout}s")

    # ── Writes ────────────────────────────────────────────────────────────

    def append(self, event: ValidEvent) -> str:
        """Durably persist a validated event and return its id.

        Either the row is committed and the id returned, or nothing is
        visible to readers and StoreUnavailableError is raised.
        """
        payload_json = json.dumps(event.payload, separators=(",", ":"), default=str)
        event_id = f"evt-{uuid.uuid4().hex}"

        self._acquire()
        try:
            conn = self._get_conn()
            accepted = self._clock()
            if accepted.tzinfo is None:
                accepted = accepted.replace(tzinfo=timezone.utc)
            if self._last_accepted is not None and accepted < self._last_accepted:
                accepted = self._last_accepted
            try:
                conn.execute(
                    """INSERT INTO interaction_events
                       (id, user_id, kind, payload, accepted_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (event_id, event.user_id, event.kind.value, payload_json, _format_ts(accepted)),
                )
                conn.commit()
            except sqlite3.Error as exc:
                try:
                    conn.rollback()
                except sqlite3.Error:
                    logger.debug("Rollback after failed append also failed", exc_info=True)
                raise StoreUnavailableError(f"Append failed: {exc}") from exc
            self._last_accepted = accepted
        finally:
            self._lock.release()

        logger.debug("Accepted %s event %s", event.kind.value, event_id)
        return event_id

    # ── Reads ─────────────────────────────────────────────────────────────

    def recent(
        self,
        limit: int = MAX_RECENT,
        kind: Optional[EventKind] = None,
        user_id: Optional[str] = None,
    ) -> list[InteractionEvent]:
        """Most recently accepted events, newest first, at most min(limit, 1000)."""
        limit = max(0, min(int(limit), MAX_RECENT))
        if limit == 0:
            return []

        query = "SELECT * FROM interaction_events WHERE 1=1"
        params: list = []
        if kind is not None:
            query += " AND kind = ?"
            params.append(EventKind(kind).value)
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        query += " ORDER BY sequence DESC LIMIT ?"
        params.append(limit)

        rows = self._fetchall(query, params)
        return [self._row_to_event(r) for r in rows]

    def get(self, event_id: str) -> Optional[InteractionEvent]:
        rows = self._fetchall("SELECT * FROM interaction_events WHERE id = ?", (event_id,))
        return self._row_to_event(rows[0]) if rows else None

    def count(self) -> int:
        rows = self._fetchall("SELECT COUNT(*) as c FROM interaction_events", ())
        return rows[0]["c"]

    def stats(self) -> dict:
        """Totals per kind plus the span of the log."""
        by_kind = {k.value: 0 for k in EventKind}
        for r in self._fetchall(
            "SELECT kind, COUNT(*) as c FROM interaction_events GROUP BY kind", ()
        ):
            by_kind[r["kind"]] = r["c"]

        span = self._fetchall(
            """SELECT COUNT(*) as total,
                      COUNT(DISTINCT user_id) as users,
                      MIN(accepted_at) as first_at,
                      MAX(accepted_at) as last_at
               FROM interaction_events""",
            (),
        )[0]

        return {
            "total_events": span["total"],
            "unique_users": span["users"],
            "by_kind": by_kind,
            "first_accepted_at": span["first_at"],
            "last_accepted_at": span["last_at"],
        }

    def ping(self) -> bool:
        """Whether the store is currently reachable."""
        try:
            self._fetchall("SELECT 1", ())
        except StoreUnavailableError:
            return False
        return True

    def _fetchall(self, query: str, params) -> list[sqlite3.Row]:
        self._acquire()
        try:
            conn = self._get_conn()
            try:
                return conn.execute(query, params).fetchall()
            except sqlite3.Error as exc:
                raise StoreUnavailableError(f"Query failed: {exc}") from exc
        finally:
            self._lock.release()

    def _row_to_event(self, row: sqlite3.Row) -> InteractionEvent:
        return InteractionEvent(
            id=row["id"],
            userId=row["user_id"],
            kind=EventKind(row["kind"]),
            payload=json.loads(row["payload"] or "{}"),
            acceptedAt=row["accepted_at"],
            sequence=row["sequence"],
        )

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
