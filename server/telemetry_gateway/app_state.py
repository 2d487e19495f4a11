"""Telemetry pipeline objects shared by all requests of one app instance."""

from __future__ import annotations

import logging

from kingdom_telemetry.ingestion import IngestionGateway
from kingdom_telemetry.query import QuerySurface
from kingdom_telemetry.store import EventStore

from .config import GatewayConfig

logger = logging.getLogger(__name__)


class TelemetryState:
    """Holds the store and the two surfaces built on it.

    Requests share nothing mutable except the store, which does its own
    locking.
    """

    def __init__(self, cfg: GatewayConfig) -> None:
        self.config = cfg
        self.store = EventStore(cfg.db_path, timeout=cfg.store_timeout)
        self.gateway = IngestionGateway(self.store, enforce_consent=cfg.enforce_consent)
        self.query = QuerySurface(self.store, max_recent=cfg.max_recent)
        logger.info("Event store at %s (consent re-check %s)",
                    cfg.db_path, "on" if cfg.enforce_consent else "off")

    def close(self) -> None:
        self.store.close()
