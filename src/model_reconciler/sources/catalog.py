import logging
from typing import Any, Dict, List, Optional

from ..models import SOURCE_CATALOG, CatalogEntry, CatalogPricing
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)


def _to_float(value: Any, default: float = 0.0) -> float:
    """OpenRouter sends prices as decimal strings; unparseable means unpriced."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class OpenRouterCatalogAdapter(DataSourceAdapter[List[CatalogEntry]]):
    """Fetches model data from OpenRouter's public API."""

    source_name = SOURCE_CATALOG
    endpoint = "https://openrouter.ai/api/v1/models"
    cache_key = "openrouter_models"

    async def _fetch_remote(self) -> List[CatalogEntry]:
        raw = await self._http_get_json(self.endpoint)
        entries = raw.get("data") if isinstance(raw, dict) else None
        if not isinstance(entries, list):
            raise self._unavailable("payload has no model list")

        catalog = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            catalog.append(self._normalize(entry))

        logger.info("Fetched %d models from OpenRouter", len(catalog))
        return catalog

    @staticmethod
    def _normalize(raw: Dict[str, Any]) -> CatalogEntry:
        """Transform OpenRouter schema to a CatalogEntry."""
        prices = raw.get("pricing") or {}
        arch = raw.get("architecture") or {}
        top = raw.get("top_provider") or {}

        return CatalogEntry(
            id=raw["id"],
            display_name=raw.get("name") or "",
            description=raw.get("description") or None,
            context_length=_to_int(raw.get("context_length")),
            max_output_tokens=_to_int(top.get("max_completion_tokens")),
            modality=arch.get("modality") or None,
            pricing=CatalogPricing(
                prompt=_to_float(prices.get("prompt")),
                completion=_to_float(prices.get("completion")),
                image=_to_float(prices.get("image")) or None,
            ),
        )
