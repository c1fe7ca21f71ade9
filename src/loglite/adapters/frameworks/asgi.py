"""ASGI generic adapter for the log store.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency. It serves the JSON API under /api/logs and the static log
viewer for every other path.
"""

import asyncio
import json
import logging
import mimetypes
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from loglite.adapters.frameworks.query_params import parse_body, parse_log_query
from loglite.core.exceptions import LogStoreError, ValidationError
from loglite.core.ports import LogStorePort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

DEFAULT_STATIC_ROOT = Path(__file__).resolve().parent.parent.parent / "static"
INDEX_FILE = "log-viewer.html"

CORS_HEADERS = [
    (b"access-control-allow-origin", b"*"),
    (b"access-control-allow-methods", b"GET, POST, PUT, DELETE, OPTIONS"),
    (b"access-control-allow-headers", b"Content-Type, Authorization"),
]


async def _read_body(receive: Receive) -> bytes:
    """Collect the full request body from ASGI http.request messages."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


async def _send_response(
    send: Send,
    status: int,
    content_type: str,
    body: str | bytes,
    extra_headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body (str is encoded as UTF-8).
        extra_headers: Additional raw headers, e.g. CORS.
    """
    headers = [(b"content-type", content_type.encode())]
    headers.extend(extra_headers or [])
    await send({"type": "http.response.start", "status": status, "headers": headers})
    payload = body.encode() if isinstance(body, str) else body
    await send({"type": "http.response.body", "body": payload})


async def _send_json(send: Send, status: int, data: Any) -> None:
    await _send_response(
        send,
        status,
        "application/json",
        json.dumps(data, ensure_ascii=False),
        CORS_HEADERS,
    )


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, Any]],
    log_message: str,
) -> None:
    """Execute an API endpoint with error handling and send a JSON response.

    ValidationError becomes 400; any other failure is logged and becomes 500.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Async function returning JSON-serializable data.
        log_message: Message prefix for the operator log and error body.
    """
    try:
        data = await endpoint_func()
    except ValidationError as exc:
        logger.warning("%s: %s", log_message, exc)
        await _send_json(send, 400, {"error": str(exc)})
        return
    except Exception as exc:
        logger.exception(log_message)
        await _send_json(send, 500, {"error": f"{log_message}: {exc}"})
        return
    await _send_json(send, 200, data)


def resolve_static_path(root: Path, request_path: str) -> Path | None:
    """Map a URL path to a file under root, or None if it escapes root."""
    relative = INDEX_FILE if request_path in ("", "/") else request_path.lstrip("/")
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root):
        return None
    return candidate


async def _serve_static(send: Send, root: Path, request_path: str) -> None:
    """Serve a file from root with 403/404/500 handling."""
    file_path = resolve_static_path(root, request_path)
    if file_path is None:
        await _send_response(send, 403, "text/html", "<h1>403 Forbidden</h1>")
        return
    try:
        data = await asyncio.to_thread(file_path.read_bytes)
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        await _send_response(send, 404, "text/html", "<h1>404 Not Found</h1>")
        return
    except OSError:
        logger.exception("Error reading static file %s", file_path)
        await _send_response(
            send, 500, "text/html", "<h1>500 Internal Server Error</h1>"
        )
        return
    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    await _send_response(send, 200, content_type, data)


async def _run_lifespan(store: LogStorePort, receive: Receive, send: Send) -> None:
    """Open the store on startup and close it on shutdown.

    A store that fails to open is logged and the server still starts;
    requests then report the storage error individually.
    """
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            try:
                await store.open()
            except LogStoreError:
                logger.error("Log store unavailable at startup, continuing")
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            try:
                await store.close()
            except LogStoreError as exc:
                logger.warning("Error closing log store: %s", exc)
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_asgi_app(
    store: LogStorePort,
    static_root: str | Path | None = None,
) -> ASGIApp:
    """Create an ASGI app exposing the log query API and the viewer page.

    Routes:
        POST /api/logs           - query entries (JSON filter body)
        GET  /api/logs/stats     - per-level statistics
        GET  /api/logs/sessions  - per-session summaries
        OPTIONS /api/...         - CORS preflight
        anything else            - static files from static_root

    Args:
        store: Log store implementing LogStorePort.
        static_root: Directory served for non-API paths. Defaults to the
            packaged viewer.

    Returns:
        ASGI application callable.
    """
    root = Path(static_root or DEFAULT_STATIC_ROOT).resolve()

    async def query_logs(receive: Receive) -> list[dict[str, Any]]:
        filters = parse_log_query(parse_body(await _read_body(receive)))
        return [entry.to_dict() for entry in await store.query(filters)]

    async def level_stats() -> list[dict[str, Any]]:
        return [row.to_dict() for row in await store.stats()]

    async def session_list() -> list[dict[str, Any]]:
        return [row.to_dict() for row in await store.sessions()]

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _run_lifespan(store, receive, send)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]
        method = scope["method"]

        if not path.startswith("/api/"):
            await _serve_static(send, root, path)
        elif method == "OPTIONS":
            await _send_response(send, 200, "text/plain", b"", CORS_HEADERS)
        elif path == "/api/logs" and method == "POST":
            await _handle_endpoint(
                send, lambda: query_logs(receive), "Failed to query logs"
            )
        elif path == "/api/logs/stats" and method == "GET":
            await _handle_endpoint(send, level_stats, "Failed to load log statistics")
        elif path == "/api/logs/sessions" and method == "GET":
            await _handle_endpoint(send, session_list, "Failed to load sessions")
        else:
            await _send_json(send, 404, {"error": "API endpoint not found"})

    return app
