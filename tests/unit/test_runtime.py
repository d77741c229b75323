"""Unit tests for the herald.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from herald import runtime
from herald.runtime import create_app

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a test client for the health-only runtime app."""
    monkeypatch.delenv("HERALD_DATABASE_URL", raising=False)
    return falcon.testing.TestClient(create_app())


class TestHealthOnlyMode:
    """The runtime starts health-only without a database URL."""

    def test_health_returns_json_status_ok(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health returns JSON with status ok."""
        result = client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ok"}
        assert result.headers.get("content-type", "").startswith("application/json")

    def test_ready_returns_json_status_ready(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /ready returns JSON with status ready."""
        result = client.simulate_get("/ready")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ready"}

    def test_webhook_route_absent(self, client: falcon.testing.TestClient) -> None:
        """Without a database the webhook endpoint is not mounted."""
        result = client.simulate_post("/webhooks/github")
        assert result.status_code == HTTPStatus.NOT_FOUND


class TestCreateApp:
    """Tests for the create_app factory function."""

    def test_full_mode_returns_falcon_app(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """With database and chat URLs the full app is built."""
        database_url = f"sqlite+aiosqlite:///{tmp_path / 'herald.db'}"
        monkeypatch.setenv("HERALD_DATABASE_URL", database_url)
        monkeypatch.setenv("HERALD_CHAT_API_URL", "https://chat.example.test")

        app = create_app()

        assert isinstance(app, falcon.asgi.App)

    def test_invalid_port_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A malformed HERALD_PORT stops startup with exit status 1."""
        monkeypatch.setenv("HERALD_PORT", "not-a-port")

        with pytest.raises(SystemExit) as excinfo:
            create_app()

        assert excinfo.value.code == 1

    def test_missing_chat_url_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A database URL without a chat API URL stops startup."""
        monkeypatch.setenv("HERALD_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.delenv("HERALD_CHAT_API_URL", raising=False)

        with pytest.raises(SystemExit):
            create_app()


def test_main_serves_factory_with_configured_address(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """main() configures logging and hands the factory target to Granian."""
    served: dict[str, object] = {}

    class _FakeGranian:
        def __init__(self, target: str, **kwargs: object) -> None:
            served["target"] = target
            served.update(kwargs)

        def serve(self) -> None:
            served["served"] = True

    monkeypatch.setattr("granian.Granian", _FakeGranian)
    monkeypatch.setattr(runtime, "configure_logging", lambda level: (level, False))
    monkeypatch.setenv("HERALD_HOST", "127.0.0.1")
    monkeypatch.setenv("HERALD_PORT", "9001")

    runtime.main()

    assert served["target"] == "herald.runtime:create_app"
    assert served["address"] == "127.0.0.1"
    assert served["port"] == 9001  # noqa: PLR2004
    assert served["factory"] is True
    assert served["served"] is True
