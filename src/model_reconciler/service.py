"""
Model Reconciliation Service

Fetches every source concurrently, tolerates individual source failures,
matches and merges the configured model list (plus, optionally, the whole
catalog) and returns the reconciled records with a list of warnings.

Nothing about a reconciled record outlives the call that produced it; only
the raw source responses are cached between calls.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .cache import TTLCache
from .config import Settings
from .index import ModelIndex
from .matcher import ModelMatcher
from .merger import DataMerger
from .models import (
    SOURCE_CONFIG,
    CatalogEntry,
    ConfigEntry,
    LeaderboardEntry,
    MergedModel,
    PricingEntry,
    ReconciliationResult,
)
from .normalization import catalog_keys, extract_provider, leaderboard_keys
from .sources import (
    ConfigFileProvider,
    DataSourceAdapter,
    LiteLLMPricingAdapter,
    LMArenaAdapter,
    OpenRouterCatalogAdapter,
)

lib_logger = logging.getLogger("model_reconciler")


class ModelReconciliationService:
    """
    Central entry point for reconciled model data.

    Every collaborator is injectable; by default the adapters share one TTL
    cache and are configured from ``Settings``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCache] = None,
        config_provider: Optional[ConfigFileProvider] = None,
        catalog: Optional[DataSourceAdapter] = None,
        pricing: Optional[DataSourceAdapter] = None,
        leaderboards: Optional[Sequence[LMArenaAdapter]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.cache = cache if cache is not None else TTLCache()
        s = self.settings

        self._config_provider = config_provider or ConfigFileProvider(s.config_path)
        self._catalog = catalog or OpenRouterCatalogAdapter(
            self.cache, s.openrouter_cache_ttl, s.source_timeout, client
        )
        self._pricing = pricing or LiteLLMPricingAdapter(
            self.cache, s.litellm_pricing_cache_ttl, s.source_timeout, client
        )
        if leaderboards is None:
            leaderboards = [
                LMArenaAdapter(category, self.cache, s.arena_cache_ttl, s.arena_timeout, client)
                for category in s.arena_categories
            ]
        self._leaderboards = list(leaderboards)

        self._matcher = ModelMatcher(
            prefix_min_length=s.prefix_match_min_length,
            local_min_score=s.local_match_min_score,
        )
        self._merger = DataMerger(
            local_providers=s.local_providers,
            free_local_models=s.free_local_models,
        )

        self._last_run: float = 0
        self._last_warnings: List[str] = []
        self._last_model_count = 0
        self._last_configured_count = 0

    @property
    def categories(self) -> List[str]:
        return [board.category for board in self._leaderboards]

    # ---------- Lifecycle ----------

    async def start(self):
        """Begin the periodic sweep of expired cache entries."""
        await self.cache.start_sweeper(self.settings.cache_sweep_interval)

    async def stop(self):
        await self.cache.stop_sweeper()

    # ---------- Query API ----------

    async def get_all_models(self, include_unconfigured: bool = False) -> ReconciliationResult:
        """
        Reconcile every configured model (and optionally every catalog model).

        Order: configured entries in configuration order, then unconfigured
        catalog entries in catalog order.
        """
        config_entries, config_warning, catalog_result, pricing_result, board_results = (
            await self._load_all_sources()
        )

        warnings: List[str] = []
        if config_warning:
            warnings.append(config_warning)
        for result in [catalog_result, pricing_result, *board_results]:
            if result.warning:
                warnings.append(result.warning)

        catalog: List[CatalogEntry] = catalog_result.records or []
        pricing_table: Dict[str, PricingEntry] = pricing_result.records or {}

        catalog_index = ModelIndex.build(catalog, lambda e: e.id, catalog_keys)
        pricing_index: ModelIndex[PricingEntry] = ModelIndex(catalog_keys)
        for model_id, entry in pricing_table.items():
            pricing_index.add(model_id, entry)
        board_indexes: Dict[str, ModelIndex[LeaderboardEntry]] = {
            board.category: ModelIndex.build(
                result.records or [], lambda e: e.display_name, leaderboard_keys
            )
            for board, result in zip(self._leaderboards, board_results)
        }

        lib_logger.debug(
            "Sources: config=%d catalog=%d pricing=%d %s",
            len(config_entries),
            len(catalog),
            len(pricing_table),
            " ".join(f"{c}={len(i)}" for c, i in board_indexes.items()),
        )

        merged: Dict[str, MergedModel] = {}

        for entry in config_entries:
            if entry.is_wildcard:
                self._expand_wildcard(entry, catalog, pricing_index, board_indexes, merged)
                continue

            identifier = entry.model_identifier
            catalog_entry = self._matcher.match_strict(identifier, catalog_index)
            pinned_id = None
            if catalog_entry is None and self.settings.is_local_provider(
                extract_provider(identifier)
            ):
                catalog_entry = self._matcher.match_local(identifier, catalog_index)
                if catalog_entry is not None:
                    pinned_id = identifier

            model = self._reconcile(
                entry, catalog_entry, identifier, pricing_index, board_indexes, pinned_id
            )
            lib_logger.debug(
                "[%s] (%s) catalog=%s%s benchmarks=%s",
                entry.logical_name,
                identifier,
                catalog_entry.id if catalog_entry else "NO",
                " (fuzzy)" if pinned_id else "",
                [c for c, score in model.benchmarks.items() if score] or "NO",
            )
            merged[model.id] = model

        unconfigured = 0
        if include_unconfigured:
            for catalog_entry in catalog:
                if catalog_entry.id in merged:
                    continue
                unconfigured += 1
                merged[catalog_entry.id] = self._reconcile(
                    None, catalog_entry, catalog_entry.id, pricing_index, board_indexes
                )

        models = list(merged.values())
        self._record_pass(models, warnings)
        lib_logger.debug(
            "Reconciled %d models (%d unconfigured), %d warnings",
            len(models),
            unconfigured,
            len(warnings),
        )
        return ReconciliationResult(models=models, warnings=warnings)

    async def get_model_by_id(self, model_id: str) -> Optional[MergedModel]:
        """Look up one reconciled model; None means not found."""
        result = await self.get_all_models(include_unconfigured=True)
        for model in result.models:
            if model.id == model_id:
                return model
        return None

    async def refresh(self) -> Dict[str, int]:
        """Drop every cached source response and reload the configuration."""
        self.cache.flush_all()
        loop = asyncio.get_running_loop()
        entries = await loop.run_in_executor(None, self._config_provider.load)
        lib_logger.info("Configuration reloaded: %d models", len(entries))
        return {"models_loaded": len(entries)}

    def status(self) -> Dict[str, Any]:
        """Return service health/stats for the last aggregation pass."""
        return {
            "healthy": not self._last_warnings,
            "warnings": list(self._last_warnings),
            "last_run": self._last_run,
            "model_count": self._last_model_count,
            "configured_count": self._last_configured_count,
            "cached_sources": len(self.cache),
        }

    # ---------- Internals ----------

    async def _load_config(self) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._config_provider.load), None
        except Exception as err:
            lib_logger.error("Config load failed: %s", err)
            return [], f"{SOURCE_CONFIG}: {err}"

    async def _load_all_sources(self):
        """Fetch from all sources concurrently."""
        (config_entries, config_warning), catalog_result, pricing_result, *board_results = (
            await asyncio.gather(
                self._load_config(),
                self._catalog.load(),
                self._pricing.load(),
                *(board.load() for board in self._leaderboards),
            )
        )
        return config_entries, config_warning, catalog_result, pricing_result, board_results

    def _expand_wildcard(
        self,
        entry: ConfigEntry,
        catalog: List[CatalogEntry],
        pricing_index: ModelIndex[PricingEntry],
        board_indexes: Dict[str, ModelIndex[LeaderboardEntry]],
        merged: Dict[str, MergedModel],
    ) -> None:
        prefix = entry.wildcard_prefix
        count = 0
        for catalog_entry in catalog:
            if catalog_entry.id.lower().startswith(prefix):
                count += 1
                merged[catalog_entry.id] = self._reconcile(
                    entry, catalog_entry, catalog_entry.id, pricing_index, board_indexes
                )
        lib_logger.debug(
            "[wildcard] %s -> matched %d catalog models", entry.model_identifier, count
        )

    def _reconcile(
        self,
        config: Optional[ConfigEntry],
        catalog_entry: Optional[CatalogEntry],
        benchmark_identifier: str,
        pricing_index: ModelIndex[PricingEntry],
        board_indexes: Dict[str, ModelIndex[LeaderboardEntry]],
        pinned_id: Optional[str] = None,
    ) -> MergedModel:
        pricing_keys = [
            config.model_identifier if config and not config.is_wildcard else None,
            catalog_entry.id if catalog_entry else None,
        ]
        pricing_entry = self._matcher.match_first(pricing_keys, pricing_index)

        benchmarks: Dict[str, Optional[LeaderboardEntry]] = {}
        for category, index in board_indexes.items():
            benchmarks[category] = (
                self._matcher.match(benchmark_identifier, index) if index else None
            )

        return self._merger.merge(
            config, catalog_entry, pricing_entry, benchmarks, model_id=pinned_id
        )

    def _record_pass(self, models: List[MergedModel], warnings: List[str]) -> None:
        self._last_run = time.time()
        self._last_warnings = list(warnings)
        self._last_model_count = len(models)
        self._last_configured_count = sum(1 for m in models if m.is_configured)


# Global singleton
_service_instance: Optional[ModelReconciliationService] = None


def get_reconciliation_service() -> ModelReconciliationService:
    """Get or create the global service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = ModelReconciliationService()
    return _service_instance
