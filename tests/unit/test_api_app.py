"""Unit tests for repopin.api.app application factory.

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

from repopin.api.app import AppDependencies, create_app
from repopin.ratelimit import RateLimiter
from repopin.sync.models import OutcomeKind, SyncOutcome

_SECRET = "3f0c6a52-2b49-4c1e-9d7f-0a8b6c5d4e3f"


@pytest.fixture
def sync_service() -> mock.MagicMock:
    """Build a sync service double whose trigger reports a disabled sync."""
    service = mock.MagicMock()
    service.trigger = mock.AsyncMock(
        return_value=SyncOutcome(kind=OutcomeKind.DISABLED)
    )
    return service


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client(sync_service: mock.MagicMock) -> falcon.testing.TestClient:
    """Build a test client with the sync endpoint mounted."""
    deps = AppDependencies(sync_service=sync_service, rate_limiter=RateLimiter())
    return falcon.testing.TestClient(create_app(deps))


class TestCreateAppHealthOnly:
    """Tests for create_app() without a sync service."""

    def test_returns_falcon_app(self) -> None:
        """Create_app() returns a Falcon ASGI App."""
        app = create_app()
        assert isinstance(app, falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_ready_reports_sync_unavailable(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Health-only app reports that syncing is not mounted."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready", "sync": False}, "wrong /ready body"

    def test_sync_endpoint_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without a sync service the trigger endpoint returns 404."""
        result = health_client.simulate_post(f"/sync/{_SECRET}")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestCreateAppWithSync:
    """Tests for create_app() with a sync service."""

    def test_ready_reports_sync_available(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The readiness probe reflects the mounted sync endpoint."""
        result = full_client.simulate_get("/ready")
        assert result.json == {"status": "ready", "sync": True}, "wrong /ready body"

    def test_sync_endpoint_registered(
        self,
        full_client: falcon.testing.TestClient,
        sync_service: mock.MagicMock,
    ) -> None:
        """With a sync service the trigger endpoint delegates to it."""
        result = full_client.simulate_post(f"/sync/{_SECRET}")
        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json == {"message": "Sync disabled"}, "wrong body"
        sync_service.trigger.assert_awaited_once_with(_SECRET)

    def test_get_is_not_allowed(self, full_client: falcon.testing.TestClient) -> None:
        """Only POST triggers a sync."""
        result = full_client.simulate_get(f"/sync/{_SECRET}")
        assert result.status == falcon.HTTP_405, "expected HTTP 405"
