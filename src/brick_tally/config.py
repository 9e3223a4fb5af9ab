"""Application configuration. Loads .env, then overrides from settings.json."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    if _SETTINGS_FILE.exists():
        try:
            return json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(settings, indent=2), encoding="utf-8"
    )


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DATABASE_PATH: Path = Path(
        os.getenv("DATABASE_PATH", str(_PROJECT_ROOT / "data" / "brick_tally.db"))
    )
    BACKUP_PATH: Path = Path(
        os.getenv("DATABASE_BACKUP_PATH", str(_PROJECT_ROOT / "data" / "backups"))
    )
    RECENTS_PATH: Path = Path(
        os.getenv(
            "RECENTS_PATH",
            str(_PROJECT_ROOT / "data" / "recent_sessions.json"),
        )
    )

    # Rebrickable (settings.json overrides .env)
    REBRICKABLE_API_KEY: str = _runtime.get(
        "rebrickable_api_key",
        os.getenv("REBRICKABLE_API_KEY", ""),
    )
    REBRICKABLE_BASE_URL: str = _runtime.get(
        "rebrickable_base_url",
        os.getenv("REBRICKABLE_BASE_URL", "https://rebrickable.com/api/v3"),
    )
    REBRICKABLE_TIMEOUT: int = int(_runtime.get(
        "rebrickable_timeout",
        os.getenv("REBRICKABLE_TIMEOUT", "15"),
    ))

    # Sessions & sharing
    SHARE_BASE_URL: str = _runtime.get(
        "share_base_url",
        os.getenv("SHARE_BASE_URL", "brickup://s/"),
    )
    SLUG_LENGTH: int = int(os.getenv("SLUG_LENGTH", "12"))
    MAX_RECENT_SESSIONS: int = int(_runtime.get(
        "max_recent_sessions",
        os.getenv("MAX_RECENT_SESSIONS", "10"),
    ))

    # Realtime polling of the shared database (milliseconds)
    SYNC_POLL_INTERVAL_MS: int = int(_runtime.get(
        "sync_poll_interval_ms",
        os.getenv("SYNC_POLL_INTERVAL_MS", "1000"),
    ))

    # Days of change log kept for pollers
    CHANGE_LOG_RETENTION_DAYS: int = int(
        os.getenv("CHANGE_LOG_RETENTION_DAYS", "7")
    )

    # UI
    APP_THEME: str = _runtime.get(
        "app_theme",
        os.getenv("APP_THEME", "dark"),
    )
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def update_rebrickable_settings(cls, api_key: str, base_url: str,
                                    timeout: int):
        """Update Rebrickable API settings at runtime and persist to disk."""
        cls.REBRICKABLE_API_KEY = api_key
        cls.REBRICKABLE_BASE_URL = base_url
        cls.REBRICKABLE_TIMEOUT = timeout

        settings = _load_settings()
        settings["rebrickable_api_key"] = api_key
        settings["rebrickable_base_url"] = base_url
        settings["rebrickable_timeout"] = timeout
        _save_settings(settings)

    @classmethod
    def update_share_base_url(cls, url: str):
        """Update the prefix used for shareable session links."""
        cls.SHARE_BASE_URL = url
        settings = _load_settings()
        settings["share_base_url"] = url
        _save_settings(settings)

    @classmethod
    def update_theme(cls, theme: str):
        """Update theme at runtime and persist to disk."""
        cls.APP_THEME = theme
        settings = _load_settings()
        settings["app_theme"] = theme
        _save_settings(settings)

    @classmethod
    def update_sync_interval(cls, interval_ms: int):
        """Update how often the shared database is polled for changes."""
        cls.SYNC_POLL_INTERVAL_MS = interval_ms
        settings = _load_settings()
        settings["sync_poll_interval_ms"] = interval_ms
        _save_settings(settings)
