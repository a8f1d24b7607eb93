"""
Merge Engine

Combines the matched records for one model identity into a MergedModel.

Field precedence:
    id              catalog.id -> config identifier -> "unknown"
    name            catalog display name -> config logical name -> bare(id)
    context_length  catalog -> pricing max_input_tokens -> pricing max_tokens
    prices          catalog (per token, if > 0) -> pricing table (per token)
    cache reads     pricing table only
    capabilities    pricing table flags, vision also from catalog modality
    benchmarks      one score per category, absent category stays None
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    SOURCE_CATALOG,
    SOURCE_CONFIG,
    SOURCE_PRICING,
    ArenaScore,
    CatalogEntry,
    ConfigEntry,
    LeaderboardEntry,
    MergedModel,
    ModelCapabilities,
    ModelPricing,
    PricingEntry,
    benchmark_source,
)
from .normalization import bare_model_name, extract_provider

PER_MILLION = 1_000_000


def _per_million(cost_per_token: Optional[float]) -> Optional[float]:
    """Convert a positive per-token cost; anything else means unpriced."""
    if cost_per_token is None or cost_per_token <= 0:
        return None
    return cost_per_token * PER_MILLION


def _first_positive(*values: Optional[int]) -> Optional[int]:
    for value in values:
        if value:
            return value
    return None


class DataMerger:
    """
    Builds MergedModel records under a fixed source precedence.

    Local providers (models served on the user's own hardware) can be forced
    to zero pricing with no price source via ``free_local_models``.
    """

    def __init__(
        self,
        local_providers: Iterable[str] = ("ollama",),
        free_local_models: bool = True,
    ):
        self.local_providers = frozenset(p.lower() for p in local_providers)
        self.free_local_models = free_local_models

    def merge(
        self,
        config: Optional[ConfigEntry],
        catalog: Optional[CatalogEntry],
        pricing: Optional[PricingEntry],
        benchmarks: Dict[str, Optional[LeaderboardEntry]],
        model_id: Optional[str] = None,
    ) -> MergedModel:
        """
        Merge one identity. ``model_id`` pins the record id (used when a
        locally-run model borrowed its metadata from a fuzzy catalog match).
        """
        model_id = model_id or (
            catalog.id if catalog else (config.model_identifier if config else "unknown")
        )
        provider = extract_provider(config.model_identifier if config else model_id)

        sources: List[str] = []
        if config:
            sources.append(SOURCE_CONFIG)
        if catalog:
            sources.append(SOURCE_CATALOG)

        model_pricing, pricing_used = self._merge_pricing(catalog, pricing)
        capabilities, flags_used = self._merge_capabilities(catalog, pricing)

        context_length = _first_positive(
            catalog.context_length if catalog else None,
            pricing.max_input_tokens if pricing else None,
            pricing.max_tokens if pricing else None,
        )
        max_output_tokens = _first_positive(
            catalog.max_output_tokens if catalog else None,
            pricing.max_output_tokens if pricing else None,
        )
        limits_used = pricing is not None and (
            (not (catalog and catalog.context_length) and context_length is not None)
            or (not (catalog and catalog.max_output_tokens) and max_output_tokens is not None)
        )

        if self.free_local_models and provider.lower() in self.local_providers:
            model_pricing.input_per_million = 0.0
            model_pricing.output_per_million = 0.0
            model_pricing.price_source = None
            pricing_used = model_pricing.cache_read_per_token is not None

        if pricing_used or flags_used or limits_used:
            sources.append(SOURCE_PRICING)

        scores: Dict[str, Optional[ArenaScore]] = {}
        for category, entry in benchmarks.items():
            scores[category] = ArenaScore.from_entry(entry) if entry else None
            if entry:
                sources.append(benchmark_source(category))

        name = (
            (catalog.display_name if catalog else None)
            or (config.logical_name if config else None)
            or bare_model_name(model_id)
        )

        return MergedModel(
            id=model_id,
            name=name,
            provider=provider,
            configured_name=config.logical_name if config else None,
            description=catalog.description if catalog and catalog.description else None,
            context_length=context_length,
            max_output_tokens=max_output_tokens,
            modality=catalog.modality if catalog else None,
            capabilities=capabilities,
            pricing=model_pricing,
            benchmarks=scores,
            is_configured=config is not None,
            data_sources=sources,
        )

    @staticmethod
    def _merge_pricing(
        catalog: Optional[CatalogEntry], pricing: Optional[PricingEntry]
    ) -> Tuple[ModelPricing, bool]:
        """
        Resolve prices; the source that supplied the input price is the price source.

        Returns the pricing block and whether the pricing table supplied any of it.
        """
        result = ModelPricing()
        pricing_used = False

        if catalog:
            result.input_per_million = _per_million(catalog.pricing.prompt)
            result.output_per_million = _per_million(catalog.pricing.completion)
            result.image_input = catalog.pricing.image
            if result.input_per_million is not None:
                result.price_source = SOURCE_CATALOG

        if pricing:
            if result.input_per_million is None:
                result.input_per_million = _per_million(pricing.input_cost_per_token)
                if result.input_per_million is not None:
                    result.price_source = SOURCE_PRICING
                    pricing_used = True
            if result.output_per_million is None:
                result.output_per_million = _per_million(pricing.output_cost_per_token)
                if result.output_per_million is not None:
                    pricing_used = True
            if pricing.cache_read_cost_per_token is not None:
                result.cache_read_per_token = pricing.cache_read_cost_per_token
                pricing_used = True

        return result, pricing_used

    @staticmethod
    def _merge_capabilities(
        catalog: Optional[CatalogEntry], pricing: Optional[PricingEntry]
    ) -> Tuple[ModelCapabilities, bool]:
        caps = ModelCapabilities(vision=bool(catalog and catalog.accepts_images))
        if not pricing:
            return caps, False

        caps.vision = caps.vision or pricing.supports_vision
        caps.function_calling = pricing.supports_function_calling
        caps.reasoning = pricing.supports_reasoning
        caps.prompt_caching = pricing.supports_prompt_caching
        flags_used = any(
            (
                pricing.supports_vision,
                pricing.supports_function_calling,
                pricing.supports_reasoning,
                pricing.supports_prompt_caching,
            )
        )
        return caps, flags_used
