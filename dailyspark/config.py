"""Centralized configuration for the DailySpark backend.

Settings are read from the environment exactly once, at process start, into a
frozen ``Settings`` value that is handed to the services and the orchestrator.
Nothing below the entry points reads ``os.environ`` directly. Environment
variable overrides use safe defaults so the app starts without extra setup;
email delivery simply stays disabled until SMTP_* is provided.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"
EMAIL_SUBJECT_PREFIX: str = "[DailySpark]"

# --- Paths ---
DAILYSPARK_ROOT = Path(__file__).parent
DEFAULT_DB_PATH = DAILYSPARK_ROOT / "data" / "dailyspark.db"

# --- Database ---
DB_CONNECT_TIMEOUT: float = float(os.getenv("DAILYSPARK_DB_CONNECT_TIMEOUT", "30.0"))
DB_RETRY_MAX: int = int(os.getenv("DAILYSPARK_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("DAILYSPARK_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("DAILYSPARK_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("DAILYSPARK_DB_RETRY_JITTER", "0.1"))

# --- Users ---
DEFAULT_MAX_USERS: int = 100


def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).strip().lower() in ("1", "true", "yes")


def _env_int(key: str, default: int) -> int:
    """Parse an int env var, falling back to ``default`` on garbage."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""

    # Document store
    database_path: Path = DEFAULT_DB_PATH
    users_container: str = "users"
    curricula_container: str = "curricula"
    counters_container: str = "counters"

    # Email (SMTP)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    sender_email: str | None = None
    sender_name: str = "DailySpark"

    # Behaviour
    max_users_limit: int = DEFAULT_MAX_USERS
    isolate_user_failures: bool = False
    escape_email_html: bool = False

    # Runtime
    env: str = "development"
    log_level: str = "INFO"
    allowed_origins: tuple[str, ...] = ("http://localhost:3000", "http://localhost:5173")

    @property
    def email_configured(self) -> bool:
        return all([self.smtp_host, self.smtp_user, self.smtp_password, self.sender_email])

    def with_overrides(self, **changes: object) -> Settings:
        """Copy with selected fields replaced (tests, CLI flags)."""
        return replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from DAILYSPARK_* and SMTP_* environment variables."""
        smtp_user = os.getenv("SMTP_USER")
        origins = os.getenv("DAILYSPARK_ALLOWED_ORIGINS")

        return cls(
            database_path=Path(os.getenv("DAILYSPARK_DB_PATH", str(DEFAULT_DB_PATH))),
            users_container=os.getenv("DAILYSPARK_USERS_CONTAINER", "users"),
            curricula_container=os.getenv("DAILYSPARK_CURRICULA_CONTAINER", "curricula"),
            counters_container=os.getenv("DAILYSPARK_COUNTERS_CONTAINER", "counters"),
            smtp_host=os.getenv("SMTP_HOST"),
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_user=smtp_user,
            smtp_password=os.getenv("SMTP_PASSWORD"),
            sender_email=os.getenv("SMTP_FROM_EMAIL", smtp_user),
            sender_name=os.getenv("SMTP_FROM_NAME", "DailySpark"),
            max_users_limit=_env_int("DAILYSPARK_MAX_USERS", DEFAULT_MAX_USERS),
            isolate_user_failures=_env_bool("DAILYSPARK_ISOLATE_USER_FAILURES"),
            escape_email_html=_env_bool("DAILYSPARK_ESCAPE_EMAIL_HTML"),
            env=os.getenv("DAILYSPARK_ENV", "development"),
            log_level=os.getenv("DAILYSPARK_LOG_LEVEL", "INFO"),
            allowed_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins
                else cls.allowed_origins
            ),
        )
