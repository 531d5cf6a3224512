"""Unit tests for the repopin.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus
from unittest import mock

import falcon.asgi
import falcon.testing
import pytest

from repopin.runtime import StorageBootstrap, _parse_port, create_app

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a test client for the health-only runtime app."""
    monkeypatch.delenv("REPOPIN_DATABASE_URL", raising=False)
    return falcon.testing.TestClient(create_app())


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_200(self, client: falcon.testing.TestClient) -> None:
        """GET /health returns HTTP 200."""
        result = client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK

    def test_health_returns_json_status_ok(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health returns JSON with status ok."""
        result = client.simulate_get("/health")
        assert result.json == {"status": "ok"}

    def test_health_content_type_is_json(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health has application/json content type."""
        result = client.simulate_get("/health")
        content_type = result.headers.get("content-type", "")
        assert content_type.startswith("application/json")


class TestReadyEndpoint:
    """Tests for the /ready endpoint."""

    def test_ready_without_database_has_no_sync(
        self, client: falcon.testing.TestClient
    ) -> None:
        """Without a database URL the sync endpoint is not mounted."""
        result = client.simulate_get("/ready")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ready", "sync": False}

    def test_sync_route_absent_without_database(
        self, client: falcon.testing.TestClient
    ) -> None:
        """POST /sync/{secret} is a 404 in health-only mode."""
        result = client.simulate_post("/sync/3f0c6a52-2b49-4c1e-9d7f-0a8b6c5d4e3f")
        assert result.status_code == HTTPStatus.NOT_FOUND


class TestCreateAppWithDatabase:
    """Tests for create_app when a database is configured."""

    def test_mounts_sync_endpoint(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A database URL and token enable the trigger endpoint."""
        monkeypatch.setenv(
            "REPOPIN_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'rt.db'}"
        )
        monkeypatch.setenv("REPOPIN_GITHUB_TOKEN", "test-token")

        app = create_app()

        assert isinstance(app, falcon.asgi.App)
        result = falcon.testing.TestClient(app).simulate_get("/ready")
        assert result.json == {"status": "ready", "sync": True}

    @pytest.mark.asyncio
    async def test_storage_bootstrap_creates_tables_and_disposes(self) -> None:
        """Startup creates the schema and shutdown disposes the engine."""
        engine = mock.MagicMock()
        engine.dispose = mock.AsyncMock()
        bootstrap = StorageBootstrap(engine)

        with (
            mock.patch(
                "repopin.settings.storage.init_settings_storage",
                new=mock.AsyncMock(),
            ) as init_settings,
            mock.patch(
                "repopin.audit.storage.init_audit_storage", new=mock.AsyncMock()
            ) as init_audit,
        ):
            await bootstrap.process_startup(None, None)
        await bootstrap.process_shutdown(None, None)

        init_settings.assert_awaited_once_with(engine)
        init_audit.assert_awaited_once_with(engine)
        engine.dispose.assert_awaited_once()


class TestParsePort:
    """Tests for REPOPIN_PORT parsing."""

    @pytest.mark.parametrize("value", ["1", "8080", "65535"])
    def test_accepts_valid_ports(self, value: str) -> None:
        """Ports within 1-65535 are accepted."""
        assert _parse_port(value) == int(value)

    @pytest.mark.parametrize("value", ["0", "65536", "http", ""])
    def test_rejects_invalid_ports(self, value: str) -> None:
        """Invalid ports exit with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            _parse_port(value)
        assert excinfo.value.code == 1
