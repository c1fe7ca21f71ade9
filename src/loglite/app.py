"""Application factory for serving the log viewer.

Run with:
    python -m loglite
or:
    uvicorn loglite.app:create_app_from_settings --factory

Environment:
    LOGLITE_DB_PATH      - SQLite database file (default: logs.db)
    LOGLITE_STATIC_ROOT  - directory with the viewer page (default: packaged)
    LOGLITE_FRONTEND     - "fastapi" (default) or "asgi" for the framework-free app
    LOGLITE_SESSION_ID   - session id attached to entries written by this process
    LOGLITE_LOG_LEVEL    - operator log level (default: INFO)
"""

from typing import Any

import uvicorn

from loglite.adapters.frameworks.asgi import create_asgi_app
from loglite.adapters.frameworks.fastapi import create_app
from loglite.adapters.storage.sqlite_logs import SQLiteLogStore
from loglite.config import Settings, configure_logging, load_settings


def create_app_from_settings(settings: Settings | None = None) -> Any:
    """Build the configured ASGI application around a new SQLiteLogStore."""
    settings = settings or load_settings()
    configure_logging(settings)
    store = SQLiteLogStore(settings.db_path, session_id=settings.session_id)
    if settings.frontend == "asgi":
        return create_asgi_app(store, settings.static_root)
    return create_app(store, settings.static_root)


def run(settings: Settings | None = None) -> None:
    """Serve the configured application with uvicorn until interrupted."""
    settings = settings or load_settings()
    app = create_app_from_settings(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)
