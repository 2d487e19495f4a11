"""Environment-based configuration for the telemetry gateway."""

from __future__ import annotations

import os
import secrets
from pathlib import Path

from kingdom_telemetry.config import CONFIG_FILENAME, load_telemetry_config, resolve_data_dir, store_path


class GatewayConfig:
    """Gateway configuration loaded from environment variables."""

    def __init__(self) -> None:
        self.data_dir = resolve_data_dir()
        self.host = os.environ.get("TELEMETRY_HOST", "0.0.0.0")
        self.port = int(os.environ.get("TELEMETRY_PORT", "8090"))

        # Pipeline settings from <data_dir>/telemetry-config.json
        self.telemetry = load_telemetry_config(self.data_dir / CONFIG_FILENAME)

        # CORS origins (comma-separated)
        origins = os.environ.get("TELEMETRY_CORS_ORIGINS", "")
        self.cors_origins: list[str] = [o.strip() for o in origins.split(",") if o.strip()] if origins else ["*"]

        self._api_key: str | None = os.environ.get("TELEMETRY_API_KEY") or None

    @property
    def db_path(self) -> Path:
        return store_path(self.telemetry, self.data_dir)

    @property
    def enforce_consent(self) -> bool:
        return bool(self.telemetry["enforce_consent"])

    @property
    def max_recent(self) -> int:
        return self.telemetry["max_recent"]

    @property
    def store_timeout(self) -> float:
        return self.telemetry["store_timeout_seconds"]

    @property
    def api_key(self) -> str:
        """Operator API key; loaded or generated on first use."""
        if self._api_key is None:
            self._api_key = self._load_or_create_api_key()
        return self._api_key

    def _load_or_create_api_key(self) -> str:
        """Load API key from <data_dir>/api-key.txt or generate a new one."""
        key_path = self.data_dir / "api-key.txt"
        if key_path.exists():
            return key_path.read_text().strip()

        # Generate and persist a new key
        key = secrets.token_urlsafe(32)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        key_path.write_text(key)
        return key


# Singleton
config = GatewayConfig()
