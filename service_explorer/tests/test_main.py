"""
Unit tests for the Explorer service application.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from service_explorer.app.catalog.models import parse_games
from service_explorer.app.catalog.store import CatalogStore
from service_explorer.app.main import ExplorerService, create_app
from shared.config import get_config
from shared.errors import CatalogFetchError
from shared.test_helpers import GameDataFactory, PUBLISHED_GAME_FIELDS


def make_games(count):
    return parse_games(GameDataFactory.create_game_records(count))


async def call_asgi(app, scope):
    """Drive one HTTP request through the ASGI app and collect the response."""
    messages = []
    request_sent = False

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        return {"type": "http.disconnect"}

    async def send(message):
        messages.append(message)

    await app(scope, receive, send)
    start = next(m for m in messages if m["type"] == "http.response.start")
    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
    return start["status"], body


class TestExplorerService:
    """Test cases for ExplorerService."""

    @pytest.fixture
    def store(self):
        return CatalogStore()

    @pytest.fixture
    def fetch(self):
        return AsyncMock(return_value=make_games(5))

    @pytest.fixture
    def service(self, store, fetch):
        """Create ExplorerService with a fake catalog provider."""
        config = get_config(
            "explorer",
            stream_interval_seconds=0.01,
            refresh_interval_seconds=3600,
            max_sse_connections=10
        )
        return ExplorerService(config=config, store=store, fetch=fetch)

    @pytest.fixture
    def client(self, service):
        """Create test client."""
        return TestClient(service.app)

    def test_service_initialization(self, service, store):
        """Components share the injected store."""
        assert service.service_name == "explorer"
        assert service.refresher.store is store
        assert service.sse_manager.store is store
        assert service.sse_manager.interval_seconds == 0.01
        assert service.catalog_client is None

    def test_default_port(self, monkeypatch):
        """The port defaults to 8080 and follows PORT."""
        monkeypatch.delenv("PORT", raising=False)
        assert get_config("explorer").port == 8080

        monkeypatch.setenv("PORT", "9123")
        assert get_config("explorer").port == 9123

    def test_default_service_builds_catalog_client(self):
        """Without an injected fetcher the upstream client is used."""
        service = ExplorerService(config=get_config("explorer"))

        assert service.catalog_client is not None
        assert service.catalog_client.catalog_url == "https://www.freetogame.com/api/games"
        assert service.catalog_client.timeout == 30.0

    def test_index_serves_client(self, client):
        """Root endpoint serves the browser client."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "EventSource('/stream')" in response.text

    def test_stats_endpoint(self, client, store):
        """Stats reports the catalog size and liveness."""
        store.replace(make_games(7))

        response = client.get("/stats")

        assert response.status_code == 200
        assert response.json() == {"total_games": 7, "status": "online"}

    def test_stats_empty_catalog(self, client):
        response = client.get("/stats")

        assert response.json() == {"total_games": 0, "status": "online"}

    def test_health_endpoint(self, client, store):
        """Health reports catalog and session details."""
        store.replace(make_games(2))

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "explorer"
        assert data["status"] == "ok"
        assert data["dependencies"]["catalog"] == "degraded"
        assert data["details"]["total_games"] == 2
        assert data["details"]["sse"]["active_connections"] == 0

    def test_metrics_endpoint(self, client):
        """Prometheus exposition includes explorer metrics."""
        stats = client.get("/stats", headers={"X-Request-ID": "req-42"})
        assert stats.headers["X-Request-ID"] == "req-42"

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "catalog_size" in response.text
        assert "http_requests_total" in response.text

    @patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=True)
    def test_stream_headers_and_first_game(self, mock_disconnected, client, store, service):
        """The stream sends SSE headers and one game straight away."""
        store.replace(make_games(3))

        response = client.get("/stream")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        assert response.headers["access-control-allow-origin"] == "*"

        assert response.text.startswith("data: ")
        assert response.text.endswith("\n\n")
        frames = [f for f in response.text.split("\n\n") if f]
        assert len(frames) == 1
        payload = json.loads(frames[0][len("data: "):])
        assert set(payload) == PUBLISHED_GAME_FIELDS
        assert payload["id"] in {1, 2, 3}

        assert service.sse_manager.sessions == {}
        assert service.sse_manager.total_sessions == 1

    @patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=True)
    def test_stream_empty_catalog(self, mock_disconnected, client):
        """An empty catalog opens with the no-games error event."""
        response = client.get("/stream")

        assert response.status_code == 200
        assert response.text == 'event: error\ndata: {"message":"No games available"}\n\n'

    @patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock)
    def test_stream_ticks_until_disconnect(self, mock_disconnected, client, store):
        """One message per tick until the client goes away."""
        mock_disconnected.side_effect = [False, False, True]
        store.replace(make_games(2))

        response = client.get("/stream")

        frames = [f for f in response.text.split("\n\n") if f]
        assert len(frames) == 3

    @patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=True)
    def test_stream_connection_limit(self, mock_disconnected, store, fetch):
        """Sessions beyond the configured limit get 503."""
        config = get_config("explorer", max_sse_connections=0)
        client = TestClient(ExplorerService(config=config, store=store, fetch=fetch).app)

        response = client.get("/stream")

        assert response.status_code == 503
        assert "Maximum SSE connections" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_stream_http10_unsupported(self, service):
        """HTTP/1.0 connections get the capability error."""
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.0",
            "method": "GET",
            "scheme": "http",
            "path": "/stream",
            "raw_path": b"/stream",
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"testserver")],
            "client": ("127.0.0.1", 50000),
            "server": ("testserver", 80),
        }

        status, body = await call_asgi(service.app, scope)

        assert status == 500
        assert json.loads(body) == {"error": "SSE not supported"}
        assert service.sse_manager.total_sessions == 0

    def test_lifespan_loads_catalog(self, service, store, fetch):
        """Startup installs the first catalog before serving."""
        with TestClient(service.app) as client:
            assert store.count() == 5
            assert client.get("/stats").json()["total_games"] == 5
            assert service.refresher.running is True

        assert service.refresher.running is False
        fetch.assert_awaited_once()

    def test_lifespan_survives_fetch_failure(self, store):
        """Startup continues with an empty catalog when the provider is down."""
        fetch = AsyncMock(side_effect=CatalogFetchError("Catalog provider unavailable"))
        service = ExplorerService(config=get_config("explorer"), store=store, fetch=fetch)

        with TestClient(service.app) as client:
            assert client.get("/stats").json() == {"total_games": 0, "status": "online"}
            health = client.get("/health").json()
            assert health["details"]["refresher"]["last_error"] == "Catalog provider unavailable"


def test_create_app():
    """create_app builds the FastAPI application."""
    app = create_app()

    paths = {route.path for route in app.routes}
    assert {"/", "/stream", "/stats", "/health", "/metrics"} <= paths
