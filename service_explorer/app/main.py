"""
Game Explorer streaming service.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ConnectionLimitError, StreamingUnsupportedError

from .catalog.client import CatalogClient
from .catalog.refresher import CatalogFetcher, CatalogRefresher
from .catalog.store import CatalogStore
from .sse.events import SSE_HEADERS
from .sse.stream_manager import SSEStreamManager, check_streaming_capability


INDEX_HTML_PATH = Path(__file__).resolve().parent / "static" / "index.html"


class ExplorerService(BaseService):
    """Streams random free-to-play games to connected browsers."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[CatalogStore] = None,
        fetch: Optional[CatalogFetcher] = None
    ):
        super().__init__("explorer", config)

        self.store = store if store is not None else CatalogStore()
        if fetch is None:
            self.catalog_client = CatalogClient(
                catalog_url=self.config.catalog_url,
                timeout=self.config.catalog_timeout_seconds,
                max_attempts=self.config.catalog_fetch_attempts
            )
            fetch = self.catalog_client.fetch_games
        else:
            self.catalog_client = None

        self.refresher = CatalogRefresher(
            store=self.store,
            fetch=fetch,
            interval_seconds=self.config.refresh_interval_seconds,
            metrics=self.metrics
        )
        self.sse_manager = SSEStreamManager(
            store=self.store,
            interval_seconds=self.config.stream_interval_seconds,
            max_connections=self.config.max_sse_connections,
            metrics=self.metrics
        )
        self.index_html = INDEX_HTML_PATH.read_text(encoding="utf-8")

        self._setup_explorer_routes()
        self.app.state.explorer_service = self

    def _setup_explorer_routes(self):
        """Set up explorer-specific routes."""

        @self.app.get("/", response_class=HTMLResponse)
        async def index():
            """Browser client."""
            return HTMLResponse(self.index_html)

        @self.app.get("/stream")
        async def stream(request: Request):
            """Server-Sent Events stream of random games."""
            try:
                check_streaming_capability(request.scope)
                session = self.sse_manager.open_session(disconnect_check=request.is_disconnected)
            except StreamingUnsupportedError as e:
                self.logger.warning("Streaming unsupported", details=e.details)
                return JSONResponse(status_code=500, content={"error": e.message})
            except ConnectionLimitError as e:
                self.logger.warning("SSE connection rejected", error=e.message)
                return JSONResponse(status_code=503, content={"error": e.message})

            return StreamingResponse(
                self.sse_manager.stream(session),
                media_type="text/event-stream",
                headers=SSE_HEADERS
            )

        @self.app.get("/stats")
        async def stats():
            """Catalog size and liveness."""
            return {
                "total_games": self.store.count(),
                "status": "online"
            }

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report the catalog as degraded until a refresh has succeeded."""
        return {
            "catalog": "ok" if self.refresher.last_success_at else "degraded"
        }

    def _health_details(self) -> Dict[str, Any]:
        return {
            "total_games": self.store.count(),
            "refresher": self.refresher.get_status(),
            "sse": self.sse_manager.get_connection_stats()
        }

    async def start(self):
        """Load the catalog and start the refresh loop."""
        await self.refresher.start()
        self.logger.info(
            "Explorer service started",
            port=self.config.port,
            total_games=self.store.count()
        )

    async def stop(self):
        """Stop the refresh loop and release open sessions."""
        await self.refresher.stop()
        self.sse_manager.close_all()
        self.logger.info("Explorer service stopped")


def create_app():
    """Create explorer service application."""
    service = ExplorerService()
    return service.app


def main():
    ExplorerService().run()


if __name__ == "__main__":
    main()
