"""Read-only operator access to the event log."""

from typing import Optional

from .models import MAX_RECENT, EventKind, InteractionEvent
from .store import EventStore


class QuerySurface:
    """Operator-facing reads. Never mutates, never filters by consent.

    Events were consent-checked when they were ingested, so everything in the
    log is returned as stored.
    """

    def __init__(self, store: EventStore, max_recent: int = MAX_RECENT) -> None:
        self.store = store
        self.max_recent = max(0, min(max_recent, MAX_RECENT))

    def recent(
        self,
        limit: Optional[int] = None,
        kind: Optional[EventKind] = None,
        user_id: Optional[str] = None,
    ) -> list[InteractionEvent]:
        """Most recent events, newest first. Empty list when the log is empty."""
        if limit is None:
            limit = self.max_recent
        limit = max(0, min(limit, self.max_recent))
        return self.store.recent(limit, kind=kind, user_id=user_id)

    def get(self, event_id: str) -> Optional[InteractionEvent]:
        return self.store.get(event_id)

    def stats(self) -> dict:
        return self.store.stats()
