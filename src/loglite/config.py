"""Configuration: frozen dataclass loaded from environment variables."""

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    db_path: str = "logs.db"
    host: str = "127.0.0.1"
    port: int = 3000
    static_root: str | None = None
    frontend: str = "fastapi"  # "fastapi" or "asgi"
    session_id: str | None = None
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from LOGLITE_* environment variables with defaults."""
    frontend = os.environ.get("LOGLITE_FRONTEND", Settings.frontend).lower()
    if frontend not in ("fastapi", "asgi"):
        raise ValueError(
            f"LOGLITE_FRONTEND must be 'fastapi' or 'asgi', got {frontend!r}"
        )
    return Settings(
        db_path=os.environ.get("LOGLITE_DB_PATH", Settings.db_path),
        host=os.environ.get("LOGLITE_HOST", Settings.host),
        port=int(os.environ.get("LOGLITE_PORT", Settings.port)),
        static_root=os.environ.get("LOGLITE_STATIC_ROOT") or None,
        frontend=frontend,
        session_id=os.environ.get("LOGLITE_SESSION_ID") or None,
        log_level=os.environ.get("LOGLITE_LOG_LEVEL", Settings.log_level).upper(),
    )


def configure_logging(settings: Settings) -> None:
    """Send operator logs to the console at the configured level."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
