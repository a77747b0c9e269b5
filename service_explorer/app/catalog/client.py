"""
FreeToGame catalog client.
"""

import httpx
from pydantic import ValidationError
from typing import List, Optional

from shared.config import FREETOGAME_GAMES_URL
from shared.errors import CatalogFetchError
from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception

from .models import Game, parse_games


class CatalogClient:
    """Client for fetching the full game catalog from the upstream provider."""

    def __init__(
        self,
        catalog_url: str = FREETOGAME_GAMES_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.catalog_url = catalog_url
        self.timeout = timeout
        self.logger = get_logger("explorer.catalog.client")
        self._transport = transport
        self._fetch_with_retry = retry_on_exception(
            (CatalogFetchError,),
            RetryConfig(max_attempts=max_attempts, base_delay=retry_base_delay)
        )(self._fetch_once)

    async def fetch_games(self) -> List[Game]:
        """Fetch and decode the catalog.

        Raises CatalogFetchError on network failure, non-success status or a
        malformed payload.
        """
        return await self._fetch_with_retry()

    async def _fetch_once(self) -> List[Game]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.catalog_url)
                response.raise_for_status()
                payload = response.json()

        except httpx.TimeoutException:
            self.logger.warning("Catalog provider timeout", url=self.catalog_url)
            raise CatalogFetchError("Catalog provider timeout", {"url": self.catalog_url})
        except httpx.HTTPStatusError as e:
            self.logger.warning(
                "Catalog provider returned an error status",
                url=self.catalog_url,
                status_code=e.response.status_code
            )
            raise CatalogFetchError(
                f"Catalog provider returned HTTP {e.response.status_code}",
                {"url": self.catalog_url, "status_code": e.response.status_code}
            )
        except httpx.RequestError as e:
            self.logger.warning("Catalog provider request error", url=self.catalog_url, error=str(e))
            raise CatalogFetchError("Catalog provider unavailable", {"url": self.catalog_url, "error": str(e)})
        except ValueError as e:
            raise CatalogFetchError("Catalog payload is not valid JSON", {"error": str(e)})

        if not isinstance(payload, list):
            raise CatalogFetchError(
                "Catalog payload is not a list",
                {"type": type(payload).__name__}
            )

        try:
            games = parse_games(payload)
        except (ValidationError, TypeError) as e:
            raise CatalogFetchError("Catalog payload is malformed", {"error": str(e)})

        if len(games) != len(payload):
            self.logger.info(
                "Dropped duplicate catalog records",
                received=len(payload),
                kept=len(games)
            )

        return games
