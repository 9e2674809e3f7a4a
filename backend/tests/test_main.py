# backend/tests/test_main.py

import pytest
from fastapi.testclient import TestClient

import app.__main__ as entrypoint
from app.main import create_app
from app.notion.client import NotionClient, NotionConnectionError
from app.notion.config import get_settings
from app.utils.config import EnvVarMissingError


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.setattr(entrypoint, "load_dotenv", lambda: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_lifespan_creates_and_closes_shared_client(test_settings):
    app = create_app(settings=test_settings)

    with TestClient(app) as client:
        assert isinstance(app.state.notion_client, NotionClient)
        assert app.state.notion_client.settings is test_settings
        assert client.get("/health").status_code == 200

    assert app.state.notion_client is None


def test_lifespan_fails_without_api_key(monkeypatch):
    monkeypatch.delenv("NOTION_API_KEY", raising=False)
    app = create_app()

    with pytest.raises(EnvVarMissingError):
        with TestClient(app):
            pass


def test_main_exits_with_error_when_api_key_missing(monkeypatch, capsys):
    monkeypatch.delenv("NOTION_API_KEY", raising=False)

    assert entrypoint.main() == 1
    assert "NOTION_API_KEY" in capsys.readouterr().err


def test_main_exits_with_error_when_connection_check_fails(monkeypatch):
    monkeypatch.setenv("NOTION_API_KEY", "ntn_abc")
    monkeypatch.setenv("NOTION_VALIDATE_ON_STARTUP", "true")

    async def failing_validate(self):
        raise NotionConnectionError("connection refused")

    monkeypatch.setattr(NotionClient, "validate_connection", failing_validate)
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))

    assert entrypoint.main() == 1


def test_main_runs_uvicorn_with_configured_port(monkeypatch):
    monkeypatch.setenv("NOTION_API_KEY", "ntn_abc")
    monkeypatch.setenv("MCP_PORT", "4010")
    monkeypatch.setenv("NOTION_VALIDATE_ON_STARTUP", "false")
    captured = {}

    def fake_run(app, **kwargs):
        captured.update(kwargs)

    monkeypatch.setattr(entrypoint.uvicorn, "run", fake_run)

    assert entrypoint.main() == 0
    assert captured["port"] == 4010
    assert captured["host"] == "127.0.0.1"
    assert captured["log_level"] == "info"
