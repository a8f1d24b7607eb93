# src/model_reconciler/config.py
"""
Centralized settings for the model reconciler.

All values can be overridden via environment variables:
    CONFIG_PATH - Path to the model-list YAML file (default: config/config.yaml)
    OPENROUTER_CACHE_TTL - Catalog response TTL in seconds (default: 300)
    LITELLM_PRICING_CACHE_TTL - Pricing table TTL in seconds (default: 1800)
    ARENA_CACHE_TTL - Leaderboard TTL per category in seconds (default: 1800)
    SOURCE_TIMEOUT - Catalog/pricing fetch timeout in seconds (default: 15)
    ARENA_TIMEOUT - Leaderboard fetch timeout in seconds (default: 20)
    ARENA_CATEGORIES - Comma-separated leaderboard categories (default: text,code,vision)
    LOCAL_MODEL_PROVIDERS - Providers whose models run locally (default: ollama,local)
    FREE_LOCAL_MODELS - Report locally-run models as free (default: true, alias OLLAMA_FREE)
    PREFIX_MATCH_MIN_LENGTH - Minimum overlap for prefix fallback matches (default: 4)
    LOCAL_MATCH_MIN_SCORE - Reject local fuzzy matches scoring below this (default: unset)
    CACHE_SWEEP_INTERVAL - Seconds between expired-entry sweeps (default: 120)
    DEBUG - Trace every match decision at DEBUG level (default: false)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    """Get a float value from environment variable, or return default."""
    value = os.environ.get(key)
    if value is not None and value.strip():
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Invalid value for {key}: {value}. Using default: {default}")
    return default


def _get_env_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is not None and value.strip():
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Invalid value for {key}: {value}. Using default: {default}")
    return default


def _get_env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _get_env_list(key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass
class Settings:
    """Runtime settings shared by the adapters and the orchestrator."""

    config_path: str = "config/config.yaml"
    openrouter_cache_ttl: int = 300
    litellm_pricing_cache_ttl: int = 1800
    arena_cache_ttl: int = 1800
    source_timeout: float = 15.0
    arena_timeout: float = 20.0
    arena_categories: Tuple[str, ...] = ("text", "code", "vision")
    local_providers: Tuple[str, ...] = ("ollama", "local")
    free_local_models: bool = True
    prefix_match_min_length: int = 4
    local_match_min_score: Optional[float] = None
    cache_sweep_interval: int = 120
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        defaults = cls()
        # OLLAMA_FREE is the older name of the switch
        free_local = _get_env_bool(
            "FREE_LOCAL_MODELS",
            _get_env_bool("OLLAMA_FREE", defaults.free_local_models),
        )
        return cls(
            config_path=os.environ.get("CONFIG_PATH") or defaults.config_path,
            openrouter_cache_ttl=_get_env_int(
                "OPENROUTER_CACHE_TTL", defaults.openrouter_cache_ttl
            ),
            litellm_pricing_cache_ttl=_get_env_int(
                "LITELLM_PRICING_CACHE_TTL", defaults.litellm_pricing_cache_ttl
            ),
            arena_cache_ttl=_get_env_int("ARENA_CACHE_TTL", defaults.arena_cache_ttl),
            source_timeout=_get_env_float("SOURCE_TIMEOUT", defaults.source_timeout),
            arena_timeout=_get_env_float("ARENA_TIMEOUT", defaults.arena_timeout),
            arena_categories=_get_env_list(
                "ARENA_CATEGORIES", defaults.arena_categories
            ),
            local_providers=_get_env_list(
                "LOCAL_MODEL_PROVIDERS", defaults.local_providers
            ),
            free_local_models=free_local,
            prefix_match_min_length=_get_env_int(
                "PREFIX_MATCH_MIN_LENGTH", defaults.prefix_match_min_length
            ),
            local_match_min_score=_get_env_float("LOCAL_MATCH_MIN_SCORE", None),
            cache_sweep_interval=_get_env_int(
                "CACHE_SWEEP_INTERVAL", defaults.cache_sweep_interval
            ),
            debug=_get_env_bool("DEBUG", defaults.debug),
        )

    def is_local_provider(self, provider: str) -> bool:
        return provider.lower() in self.local_providers

    @staticmethod
    def http_timeout(seconds: float) -> httpx.Timeout:
        """
        Timeout configuration for a single source fetch.

        The connect phase is capped at a third of the budget (at least 1s).
        """
        return httpx.Timeout(seconds, connect=min(seconds, max(seconds / 3, 1.0)))
