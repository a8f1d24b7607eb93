import logging
from typing import Any, Dict, Optional

from ..models import SOURCE_PRICING, PricingEntry
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)

PRICING_URL = (
    "https://raw.githubusercontent.com/BerriAI/litellm/main/"
    "model_prices_and_context_window.json"
)


def _opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class LiteLLMPricingAdapter(DataSourceAdapter[Dict[str, PricingEntry]]):
    """Fetches the community-maintained LiteLLM price and context-window table."""

    source_name = SOURCE_PRICING
    endpoint = PRICING_URL
    cache_key = "litellm_pricing"

    async def _fetch_remote(self) -> Dict[str, PricingEntry]:
        raw = await self._http_get_json(self.endpoint)
        if not isinstance(raw, dict):
            raise self._unavailable("payload is not an object")

        table = {}
        for model_id, entry in raw.items():
            # "sample_spec" documents the schema, it is not a model
            if model_id == "sample_spec" or not isinstance(entry, dict):
                continue
            table[model_id] = self._normalize(entry)

        logger.info("Fetched %d entries from LiteLLM pricing", len(table))
        return table

    @staticmethod
    def _normalize(raw: Dict[str, Any]) -> PricingEntry:
        max_tokens = raw.get("max_tokens")
        return PricingEntry(
            input_cost_per_token=_opt_float(raw.get("input_cost_per_token")),
            output_cost_per_token=_opt_float(raw.get("output_cost_per_token")),
            cache_read_cost_per_token=_opt_float(raw.get("cache_read_input_token_cost")),
            # Some rows still carry max_tokens as a string like "8192"
            max_tokens=_opt_int(max_tokens),
            max_input_tokens=_opt_int(raw.get("max_input_tokens")),
            max_output_tokens=_opt_int(raw.get("max_output_tokens")),
            provider=raw.get("litellm_provider"),
            mode=raw.get("mode"),
            supports_vision=raw.get("supports_vision") is True,
            supports_function_calling=raw.get("supports_function_calling") is True,
            supports_reasoning=raw.get("supports_reasoning") is True,
            supports_prompt_caching=raw.get("supports_prompt_caching") is True,
        )
