"""
Data Source Adapters

Each adapter wraps one upstream source. ``fetch()`` returns the parsed records
(serving repeats from the shared TTL cache) and raises SourceUnavailable on
any failure; ``load()`` wraps it into a SourceResult so the orchestrator can
treat a failed source as empty and report it as a warning.
"""

import asyncio
import logging
from typing import Any, Dict, Generic, Optional, TypeVar

import httpx

from ..cache import TTLCache
from ..config import Settings
from ..errors import SourceUnavailable
from ..models import SourceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "ModelReconciler/1.0"


class DataSourceAdapter(Generic[T]):
    """Base interface for external data sources."""

    source_name: str = "unknown"
    endpoint: str = ""
    cache_key: str = ""

    def __init__(
        self,
        cache: TTLCache,
        ttl_seconds: float,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def fetch(self) -> T:
        """Return cached records, or retrieve and cache them. Raises on failure."""
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            return cached

        records = await self._fetch_bounded()
        self.cache.set(self.cache_key, records, self.ttl_seconds)
        return records

    async def load(self) -> SourceResult[T]:
        """
        Like ``fetch()``, with source failures converted into a degraded result.

        Cache errors are not caught.
        """
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            return SourceResult.ok(self.source_name, cached)

        try:
            records = await self._fetch_bounded()
        except SourceUnavailable as err:
            logger.error("%s fetch failed: %s", self.source_name, err.message)
            return SourceResult.degraded(self.source_name, err.message)
        except Exception as err:
            logger.error("%s fetch failed: %s", self.source_name, err)
            return SourceResult.degraded(self.source_name, str(err) or type(err).__name__)

        self.cache.set(self.cache_key, records, self.ttl_seconds)
        return SourceResult.ok(self.source_name, records)

    async def _fetch_bounded(self) -> T:
        try:
            return await asyncio.wait_for(
                self._fetch_remote(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as err:
            raise self._unavailable(
                f"timed out after {self.timeout_seconds:g}s"
            ) from err

    async def _fetch_remote(self) -> T:
        """Retrieve and parse the source. Raises SourceUnavailable."""
        raise NotImplementedError

    def _unavailable(self, message: str) -> SourceUnavailable:
        return SourceUnavailable(self.source_name, message)

    async def _http_get(self, url: str, accept: str = "application/json") -> httpx.Response:
        """Execute HTTP GET with standard headers."""
        headers: Dict[str, Any] = {"Accept": accept, "User-Agent": USER_AGENT}
        timeout = Settings.http_timeout(self.timeout_seconds)
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as err:
            raise self._unavailable(f"request timed out ({err.__class__.__name__})") from err
        except httpx.HTTPStatusError as err:
            raise self._unavailable(
                f"HTTP {err.response.status_code} from {url}"
            ) from err
        except httpx.HTTPError as err:
            raise self._unavailable(f"request failed: {err}") from err

    async def _http_get_json(self, url: str) -> Any:
        response = await self._http_get(url)
        try:
            return response.json()
        except ValueError as err:
            raise self._unavailable(f"malformed JSON payload: {err}") from err
