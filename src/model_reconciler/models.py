"""
Reconciliation Data Model

Raw records as each source delivers them, and the merged record the
orchestrator hands back to callers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

# ============================================================================
# Source Names
# ============================================================================

SOURCE_CONFIG = "config"
SOURCE_CATALOG = "openrouter"
SOURCE_PRICING = "litellm"
ARENA_PREFIX = "arena_"


def benchmark_source(category: str) -> str:
    """Source name for one leaderboard category, e.g. "arena_code"."""
    return f"{ARENA_PREFIX}{category}"


# ============================================================================
# Raw Source Records
# ============================================================================


@dataclass
class ConfigEntry:
    """One line of the configured model list."""

    logical_name: str
    model_identifier: str

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.model_identifier

    @property
    def wildcard_prefix(self) -> str:
        return self.model_identifier.replace("*", "", 1).lower()


@dataclass
class CatalogPricing:
    """Per-token catalog prices. Zero means "not priced"."""

    prompt: float = 0.0
    completion: float = 0.0
    image: Optional[float] = None


@dataclass
class CatalogEntry:
    """A model listed in the marketplace catalog."""

    id: str
    display_name: str = ""
    description: Optional[str] = None
    context_length: Optional[int] = None
    max_output_tokens: Optional[int] = None
    modality: Optional[str] = None
    pricing: CatalogPricing = field(default_factory=CatalogPricing)

    @property
    def accepts_images(self) -> bool:
        if not self.modality:
            return False
        # "text+image->text": only the input side counts
        inputs = self.modality.split("->")[0]
        return "image" in inputs


@dataclass
class PricingEntry:
    """A row of the community pricing/capability table."""

    input_cost_per_token: Optional[float] = None
    output_cost_per_token: Optional[float] = None
    cache_read_cost_per_token: Optional[float] = None
    max_tokens: Optional[int] = None
    max_input_tokens: Optional[int] = None
    max_output_tokens: Optional[int] = None
    provider: Optional[str] = None
    mode: Optional[str] = None
    supports_vision: bool = False
    supports_function_calling: bool = False
    supports_reasoning: bool = False
    supports_prompt_caching: bool = False


@dataclass
class LeaderboardEntry:
    """One ranked row of a leaderboard category."""

    category: str
    display_name: str
    rating: float
    rating_upper: float
    rating_lower: float
    rank: int = 0
    votes: int = 0


# ============================================================================
# Merged Record
# ============================================================================


@dataclass
class ArenaScore:
    rating: float
    rating_upper: float
    rating_lower: float
    rank: int
    votes: int

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry) -> "ArenaScore":
        return cls(
            rating=entry.rating,
            rating_upper=entry.rating_upper,
            rating_lower=entry.rating_lower,
            rank=entry.rank,
            votes=entry.votes,
        )


@dataclass
class ModelCapabilities:
    """Feature flags for model capabilities."""

    vision: bool = False
    function_calling: bool = False
    reasoning: bool = False
    prompt_caching: bool = False


@dataclass
class ModelPricing:
    """Prices in USD per million tokens, except cache reads (per token)."""

    input_per_million: Optional[float] = None
    output_per_million: Optional[float] = None
    cache_read_per_token: Optional[float] = None
    image_input: Optional[float] = None
    price_source: Optional[str] = None

    @property
    def has_price(self) -> bool:
        return self.input_per_million is not None or self.output_per_million is not None


@dataclass
class MergedModel:
    """Complete reconciled record for one model identity."""

    id: str
    name: str
    provider: str
    configured_name: Optional[str] = None
    description: Optional[str] = None
    context_length: Optional[int] = None
    max_output_tokens: Optional[int] = None
    modality: Optional[str] = None
    capabilities: ModelCapabilities = field(default_factory=ModelCapabilities)
    pricing: ModelPricing = field(default_factory=ModelPricing)
    benchmarks: Dict[str, Optional[ArenaScore]] = field(default_factory=dict)
    is_configured: bool = False
    data_sources: List[str] = field(default_factory=list)

    def benchmark_rating(self, category: str) -> Optional[float]:
        score = self.benchmarks.get(category)
        return score.rating if score else None

    def to_dict(self) -> Dict[str, Any]:
        """Snake_case API representation."""
        return {
            "id": self.id,
            "name": self.name,
            "litellm_model_name": self.configured_name,
            "provider": self.provider,
            "description": self.description,
            "context_length": self.context_length,
            "max_output_tokens": self.max_output_tokens,
            "modality": self.modality,
            "capabilities": {
                "vision": self.capabilities.vision,
                "function_calling": self.capabilities.function_calling,
                "reasoning": self.capabilities.reasoning,
                "prompt_caching": self.capabilities.prompt_caching,
            },
            "pricing": {
                "input_per_million": self.pricing.input_per_million,
                "output_per_million": self.pricing.output_per_million,
                "cache_read_per_token": self.pricing.cache_read_per_token,
                "image_input": self.pricing.image_input,
                "price_source": self.pricing.price_source,
            },
            "benchmarks": {
                benchmark_source(category): (
                    {
                        "rating": score.rating,
                        "rating_upper": score.rating_upper,
                        "rating_lower": score.rating_lower,
                        "rank": score.rank,
                        "votes": score.votes,
                    }
                    if score
                    else None
                )
                for category, score in self.benchmarks.items()
            },
            "is_configured": self.is_configured,
            "data_sources": list(self.data_sources),
        }


# ============================================================================
# Pass Results
# ============================================================================


@dataclass
class SourceResult(Generic[T]):
    """
    Outcome of loading one source.

    Either ``records`` holds what the source returned, or ``error`` explains
    why the source is degraded for this pass (``records`` is then empty).
    """

    source: str
    records: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, source: str, records: T) -> "SourceResult[T]":
        return cls(source=source, records=records)

    @classmethod
    def degraded(cls, source: str, reason: str) -> "SourceResult[T]":
        return cls(source=source, error=reason)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def warning(self) -> Optional[str]:
        return f"{self.source}: {self.error}" if self.error else None


@dataclass
class ReconciliationResult:
    models: List[MergedModel] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
