"""Unit tests for herald.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

from unittest import mock

import falcon.asgi
import falcon.testing
import pytest
from sqlalchemy.exc import OperationalError

from herald.api.app import AppDependencies, create_app


@pytest.fixture
def deps() -> AppDependencies:
    """Build AppDependencies with mock collaborators."""
    registry = mock.MagicMock()
    registry.get_installation = mock.AsyncMock(return_value=None)
    registry.count_installations = mock.AsyncMock(return_value=0)
    return AppDependencies(
        reconciler=mock.MagicMock(),
        registry=registry,
        subscriptions=mock.MagicMock(),
    )


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client(deps: AppDependencies) -> falcon.testing.TestClient:
    """Build a test client with full domain dependencies."""
    return falcon.testing.TestClient(create_app(deps))


class TestCreateAppHealthOnly:
    """Tests for create_app() without domain dependencies."""

    def test_returns_falcon_app(self) -> None:
        """create_app() returns a Falcon ASGI App."""
        assert isinstance(create_app(), falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_has_ready_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /ready."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("POST", "/webhooks/github"),
            ("GET", "/installations/42/repositories"),
            ("GET", "/repositories/octo/repo/coverage"),
            ("GET", "/status"),
        ],
    )
    def test_domain_routes_not_registered(
        self, health_client: falcon.testing.TestClient, method: str, path: str
    ) -> None:
        """Without deps, the domain routes return 404."""
        result = health_client.simulate_request(method, path)
        assert result.status == falcon.HTTP_404, f"{path} should be absent"


class TestCreateAppWithDeps:
    """Tests for create_app() with full domain dependencies."""

    def test_returns_falcon_app(self, deps: AppDependencies) -> None:
        """create_app(deps) returns a Falcon ASGI App."""
        assert isinstance(create_app(deps), falcon.asgi.App), "expected Falcon App"

    def test_has_health_route(self, full_client: falcon.testing.TestClient) -> None:
        """Full app still responds to /health."""
        result = full_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"

    def test_webhook_route_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """With deps, the webhook route answers (an unrelated event is ignored)."""
        result = full_client.simulate_post(
            "/webhooks/github", body=b"{}", headers={"X-GitHub-Event": "ping"}
        )
        assert result.status == falcon.HTTP_200, "route should be registered"

    def test_installation_route_uses_not_found_handler(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """An unknown installation id maps to the registered 404 handler."""
        result = full_client.simulate_get("/installations/42/repositories")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"
        assert result.json["title"] == "Installation not found", "wrong title"

    def test_non_integer_installation_id_is_not_routed(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The installation id path segment must be an integer."""
        result = full_client.simulate_get("/installations/abc/repositories")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestReadinessProbe:
    """/ready reflects database reachability when dependencies are wired."""

    def test_ready_when_registry_answers(
        self, deps: AppDependencies, full_client: falcon.testing.TestClient
    ) -> None:
        """A successful installation count means ready."""
        result = full_client.simulate_get("/ready")

        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"
        deps.registry.count_installations.assert_awaited_once_with()

    def test_unavailable_when_database_fails(
        self, deps: AppDependencies, full_client: falcon.testing.TestClient
    ) -> None:
        """A database error turns /ready into HTTP 503."""
        deps.registry.count_installations.side_effect = OperationalError(
            "SELECT", {}, Exception("connection refused")
        )

        result = full_client.simulate_get("/ready")

        assert result.status == falcon.HTTP_503, "expected HTTP 503 from /ready"
        assert result.json == {"status": "unavailable"}, "wrong /ready body"
