"""FastAPI adapter for the log store."""

import asyncio
import logging
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from loglite.adapters.frameworks.asgi import DEFAULT_STATIC_ROOT, resolve_static_path
from loglite.adapters.frameworks.query_params import parse_body, parse_log_query
from loglite.core.exceptions import LogStoreError, ValidationError
from loglite.core.ports import LogStorePort

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_log_router(store: LogStorePort) -> APIRouter:
    """Create a FastAPI router with the /api/logs endpoints.

    Args:
        store: Log store implementing LogStorePort.

    Returns:
        APIRouter with query, stats and sessions endpoints configured.
    """
    router = APIRouter(prefix="/api/logs")

    @router.options("{path:path}", include_in_schema=False)
    async def preflight(path: str) -> Response:
        """Answer any OPTIONS request under /api/logs with an empty 200."""
        return Response(status_code=200)

    @router.post("")
    async def query_logs(request: Request) -> JSONResponse:
        """Return entries matching the JSON filter body, newest first."""
        try:
            filters = parse_log_query(parse_body(await request.body()))
        except ValidationError as exc:
            logger.warning("Rejected log query: %s", exc)
            return _error_response(400, str(exc))
        try:
            entries = await store.query(filters)
        except Exception as exc:
            logger.exception("Failed to query logs")
            return _error_response(500, f"Failed to query logs: {exc}")
        return JSONResponse(content=[entry.to_dict() for entry in entries])

    @router.get("/stats")
    async def level_stats() -> JSONResponse:
        """Return count and time span per level."""
        try:
            rows = await store.stats()
        except Exception as exc:
            logger.exception("Failed to load log statistics")
            return _error_response(500, f"Failed to load log statistics: {exc}")
        return JSONResponse(content=[row.to_dict() for row in rows])

    @router.get("/sessions")
    async def session_list() -> JSONResponse:
        """Return the most recently active sessions."""
        try:
            rows = await store.sessions()
        except Exception as exc:
            logger.exception("Failed to load sessions")
            return _error_response(500, f"Failed to load sessions: {exc}")
        return JSONResponse(content=[row.to_dict() for row in rows])

    return router


def create_app(
    store: LogStorePort,
    static_root: str | Path | None = None,
) -> FastAPI:
    """Create the FastAPI log viewer application.

    The store is opened on startup and closed on shutdown. A store that
    fails to open is logged and the app still serves requests. Any OPTIONS
    request under /api/ gets an empty 200, unknown API paths get a JSON 404,
    and every other GET is served from the static root (403 outside it).

    Args:
        store: Log store implementing LogStorePort.
        static_root: Directory holding the viewer page and its assets.
            Defaults to the packaged viewer.

    Returns:
        Configured FastAPI application instance.
    """
    root = Path(static_root or DEFAULT_STATIC_ROOT).resolve()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            await store.open()
        except LogStoreError:
            logger.error("Log store unavailable at startup, continuing")
        yield
        try:
            await store.close()
        except LogStoreError as exc:
            logger.warning("Error closing log store: %s", exc)

    app = FastAPI(title="Log Viewer", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.include_router(create_log_router(store))

    @app.options("/api/{rest:path}", include_in_schema=False)
    async def api_preflight(rest: str) -> Response:
        return Response(status_code=200)

    @app.api_route(
        "/api/{rest:path}",
        methods=["GET", "POST", "PUT", "DELETE"],
        include_in_schema=False,
    )
    async def api_not_found(rest: str) -> JSONResponse:
        return _error_response(404, "API endpoint not found")

    @app.get("/{path:path}", include_in_schema=False)
    async def static_file(path: str) -> Response:
        """Serve the viewer page at / and other files from the static root."""
        file_path = resolve_static_path(root, path)
        if file_path is None:
            return HTMLResponse("<h1>403 Forbidden</h1>", status_code=403)
        try:
            data = await asyncio.to_thread(file_path.read_bytes)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return HTMLResponse("<h1>404 Not Found</h1>", status_code=404)
        except OSError:
            logger.exception("Error reading static file %s", file_path)
            return HTMLResponse(
                "<h1>500 Internal Server Error</h1>", status_code=500
            )
        media_type = (
            mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        )
        return Response(content=data, media_type=media_type)

    return app
