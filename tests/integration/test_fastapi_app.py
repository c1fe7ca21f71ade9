"""Integration tests for the FastAPI log viewer application."""

import json
from pathlib import Path

import pytest
from fastapi import FastAPI

from loglite.adapters.frameworks.fastapi import create_app, create_log_router
from loglite.adapters.storage.sqlite_logs import SQLiteLogStore
from tests.stubs import RecordingStore

pytestmark = pytest.mark.tier(2)


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    (root / "log-viewer.html").write_text("<h1>viewer</h1>", encoding="utf-8")
    (root / "style.css").write_text("body {}", encoding="utf-8")
    return root


class TestLogRouter:
    @pytest.mark.asgi
    async def test_router_mounts_api_routes(
        self, seeded_store: SQLiteLogStore, asgi_test_client
    ) -> None:
        app = FastAPI()
        app.include_router(create_log_router(seeded_store))

        async with asgi_test_client(app) as client:
            logs = await client.post("/api/logs", json={"level": "error"})
            stats = await client.get("/api/logs/stats")
            sessions = await client.get("/api/logs/sessions")

        assert [row["message"] for row in logs.json()] == ["db"]
        assert len(stats.json()) == 4
        assert [row["session_id"] for row in sessions.json()] == ["run-1"]

    @pytest.mark.asgi
    async def test_double_encoded_meta(
        self, seeded_store: SQLiteLogStore, asgi_test_client
    ) -> None:
        app = create_app(seeded_store)

        async with asgi_test_client(app) as client:
            response = await client.post(
                "/api/logs", json={"meta": json.dumps({"userId": "123"})}
            )

        assert response.status_code == 200
        assert [row["message"] for row in response.json()] == ["login"]

    @pytest.mark.asgi
    async def test_malformed_meta_returns_400(self, asgi_test_client) -> None:
        store = RecordingStore()
        app = create_app(store)

        async with asgi_test_client(app) as client:
            response = await client.post("/api/logs", json={"meta": "{bad"})

        assert response.status_code == 400
        assert "error" in response.json()
        assert store.queries == []

    @pytest.mark.asgi
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("POST", "/api/logs"),
            ("GET", "/api/logs/stats"),
            ("GET", "/api/logs/sessions"),
        ],
    )
    async def test_store_failure_returns_500(
        self, method: str, path: str, asgi_test_client
    ) -> None:
        app = create_app(RecordingStore(fail=True))

        async with asgi_test_client(app) as client:
            response = await client.request(method, path, json={})

        assert response.status_code == 500
        assert "disk I/O error" in response.json()["error"]


class TestApplication:
    @pytest.mark.asgi
    async def test_cors_preflight(self, asgi_test_client) -> None:
        app = create_app(RecordingStore())

        async with asgi_test_client(app) as client:
            response = await client.options(
                "/api/logs",
                headers={
                    "Origin": "http://example.com",
                    "Access-Control-Request-Method": "POST",
                },
            )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asgi
    async def test_root_serves_viewer(
        self, static_root: Path, asgi_test_client
    ) -> None:
        app = create_app(RecordingStore(), static_root)

        async with asgi_test_client(app) as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert response.text == "<h1>viewer</h1>"

    @pytest.mark.asgi
    async def test_static_assets_and_missing_files(
        self, static_root: Path, asgi_test_client
    ) -> None:
        app = create_app(RecordingStore(), static_root)

        async with asgi_test_client(app) as client:
            asset = await client.get("/style.css")
            missing = await client.get("/missing.css")

        assert asset.status_code == 200
        assert asset.headers["content-type"].startswith("text/css")
        assert missing.status_code == 404

    @pytest.mark.asgi
    @pytest.mark.parametrize("path", ["/api/logs", "/api/logs/stats", "/api/other"])
    async def test_plain_options_returns_200(self, path: str, asgi_test_client) -> None:
        store = RecordingStore()
        app = create_app(store)

        async with asgi_test_client(app) as client:
            response = await client.options(path)

        assert response.status_code == 200
        assert response.content == b""
        assert store.queries == []

    @pytest.mark.asgi
    @pytest.mark.parametrize(
        ("method", "path"), [("GET", "/api/nothing"), ("GET", "/api/logs")]
    )
    async def test_unknown_api_path_returns_json_404(
        self, method: str, path: str, asgi_test_client
    ) -> None:
        app = create_app(RecordingStore())

        async with asgi_test_client(app) as client:
            response = await client.request(method, path)

        assert response.status_code == 404
        assert response.json() == {"error": "API endpoint not found"}

    @pytest.mark.asgi
    async def test_path_traversal_returns_403(
        self, static_root: Path, asgi_scope, asgi_send_capture, asgi_receive
    ) -> None:
        (static_root.parent / "secret.txt").write_text("top secret", encoding="utf-8")
        app = create_app(RecordingStore(), static_root)
        send, responses = asgi_send_capture
        scope = asgi_scope("GET", "/../secret.txt")
        scope.update(
            {
                "http_version": "1.1",
                "scheme": "http",
                "server": ("test", 80),
                "root_path": "",
            }
        )

        await app(scope, asgi_receive({"type": "http.request", "body": b""}), send)

        assert responses[0]["status"] == 403
        assert b"top secret" not in responses[1]["body"]

    @pytest.mark.asgi
    async def test_static_read_error_returns_500(
        self,
        static_root: Path,
        asgi_test_client,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def unreadable(self: Path) -> bytes:
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "read_bytes", unreadable)
        app = create_app(RecordingStore(), static_root)

        async with asgi_test_client(app) as client:
            response = await client.get("/style.css")

        assert response.status_code == 500

    @pytest.mark.asgi
    async def test_packaged_viewer_is_default(self, asgi_test_client) -> None:
        app = create_app(RecordingStore())

        async with asgi_test_client(app) as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert "Log Viewer" in response.text

    @pytest.mark.asgi
    async def test_lifespan_opens_and_closes_store(self) -> None:
        store = RecordingStore()
        app = create_app(store)

        async with app.router.lifespan_context(app):
            assert store.opened
            assert not store.closed

        assert store.closed

    @pytest.mark.asgi
    async def test_lifespan_survives_unopenable_store(self, tmp_path: Path) -> None:
        store = SQLiteLogStore(str(tmp_path / "missing" / "logs.db"))
        app = create_app(store)

        async with app.router.lifespan_context(app):
            assert not store.is_open
