"""
Background catalog refresh loop.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from shared.errors import CatalogFetchError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .models import Game
from .store import CatalogStore


CatalogFetcher = Callable[[], Awaitable[List[Game]]]


class CatalogRefresher:
    """Keeps a CatalogStore populated from the catalog provider.

    Failed refreshes leave the installed catalog untouched.
    """

    def __init__(
        self,
        store: CatalogStore,
        fetch: CatalogFetcher,
        interval_seconds: float = 3600.0,
        metrics: Optional[MetricsCollector] = None
    ):
        self.store = store
        self.fetch = fetch
        self.interval_seconds = interval_seconds
        self.metrics = metrics
        self.logger = get_logger("explorer.catalog.refresher")

        self.refresh_count = 0
        self.failure_count = 0
        self.last_success_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._refresh_task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Install an initial catalog, then refresh in the background."""
        if self.running:
            return
        await self.refresh_once()
        self.running = True
        self._refresh_task = asyncio.create_task(self._refresh_loop())
        self.logger.info("Catalog refresher started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Stop the background refresh task."""
        self.running = False
        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None
        self.logger.info("Catalog refresher stopped")

    async def refresh_once(self) -> bool:
        """Fetch and install one catalog. Returns True when installed."""
        self.refresh_count += 1
        try:
            games = await self.fetch()
        except CatalogFetchError as e:
            self._record_failure(e.message, e.details)
            return False
        except Exception as e:
            self._record_failure(str(e), {"type": type(e).__name__})
            return False

        total = self.store.replace(games)
        self.last_success_at = datetime.now(timezone.utc)
        self.last_error = None

        if self.metrics:
            self.metrics.increment_counter("catalog_refresh_total", status="ok")
            self.metrics.set_gauge("catalog_size", total)

        self.logger.info("Catalog loaded", total_games=total)
        return True

    async def _refresh_loop(self):
        """Refresh on a fixed period until cancelled."""
        while self.running:
            await asyncio.sleep(self.interval_seconds)
            await self.refresh_once()

    def _record_failure(self, error: str, details: Dict[str, Any]):
        self.failure_count += 1
        self.last_error = error

        if self.metrics:
            self.metrics.increment_counter("catalog_refresh_total", status="error")

        self.logger.warning(
            "Catalog refresh failed, keeping current catalog",
            error=error,
            details=details,
            total_games=self.store.count()
        )

    def get_status(self) -> Dict[str, Any]:
        """Refresh status snapshot."""
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "refresh_count": self.refresh_count,
            "failure_count": self.failure_count,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "last_error": self.last_error
        }
