"""Telemetry configuration loader.

Reads the ``telemetry`` section of ``<data dir>/telemetry-config.json`` and
merges it over DEFAULTS. A missing or unreadable file yields the defaults.
The gateway and the operator server both locate the data dir and the store
file through this module so they always open the same log.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .models import MAX_RECENT

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "TELEMETRY_DATA_DIR"
DEFAULT_DATA_DIR = Path(".kingdom")
CONFIG_FILENAME = "telemetry-config.json"

DEFAULTS = {
    # Re-check the client's consent snapshot at the gateway
    "enforce_consent": True,
    "max_recent": MAX_RECENT,
    # Upper bound on waiting for the store lock and SQLite busy handler
    "store_timeout_seconds": 2.0,
    "db_filename": "telemetry.db",
}


def resolve_data_dir() -> Path:
    """TELEMETRY_DATA_DIR if set, else DEFAULT_DATA_DIR."""
    value = os.environ.get(DATA_DIR_ENV)
    return Path(value) if value else DEFAULT_DATA_DIR


def store_path(config: dict, data_dir: Path | None = None) -> Path:
    """Path of the event store file for a loaded config."""
    return (data_dir or resolve_data_dir()) / config["db_filename"]


def load_telemetry_config(config_path: Path | None = None) -> dict:
    """Load telemetry configuration with defaults, overridden by the config file."""
    effective = _deep_copy(DEFAULTS)

    path = config_path or (resolve_data_dir() / CONFIG_FILENAME)
    if path.exists():
        try:
            cfg = json.loads(path.read_text())
            _deep_merge(effective, cfg.get("telemetry", {}))
            _coerce(effective)
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable telemetry config %s: %s", path, exc)
            effective = _deep_copy(DEFAULTS)

    return effective


def _coerce(cfg: dict) -> None:
    # The cap is a ceiling, never a floor
    cfg["max_recent"] = max(0, min(int(cfg["max_recent"]), MAX_RECENT))
    cfg["store_timeout_seconds"] = float(cfg["store_timeout_seconds"])
    cfg["db_filename"] = str(cfg["db_filename"])


def _deep_copy(d: dict) -> dict:
    """Simple deep copy for JSON-compatible dicts."""
    return json.loads(json.dumps(d))


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base, recursing into nested dicts."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        elif value is not None:
            base[key] = value
