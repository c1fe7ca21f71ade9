"""Tests for building the served application from settings."""

from pathlib import Path

import pytest
from fastapi import FastAPI

from loglite.app import create_app_from_settings
from loglite.config import Settings

pytestmark = pytest.mark.tier(1)


@pytest.mark.asgi
def test_default_frontend_is_fastapi(tmp_path: Path) -> None:
    app = create_app_from_settings(Settings(db_path=str(tmp_path / "logs.db")))
    assert isinstance(app, FastAPI)


@pytest.mark.asgi
async def test_asgi_frontend_serves_viewer(tmp_path: Path, asgi_test_client) -> None:
    settings = Settings(
        db_path=str(tmp_path / "logs.db"), frontend="asgi", session_id="run-7"
    )
    app = create_app_from_settings(settings)

    assert not isinstance(app, FastAPI)
    async with asgi_test_client(app) as client:
        response = await client.get("/")

    assert response.status_code == 200
    assert "Log Viewer" in response.text
