"""
Tests for the merge engine
"""

import pytest

from model_reconciler.merger import DataMerger
from model_reconciler.models import (
    CatalogEntry,
    CatalogPricing,
    ConfigEntry,
    LeaderboardEntry,
    PricingEntry,
)


@pytest.fixture
def merger():
    return DataMerger(local_providers=("ollama", "local"), free_local_models=True)


@pytest.fixture
def sonnet_catalog():
    return CatalogEntry(
        id="anthropic/claude-3.5-sonnet",
        display_name="Anthropic: Claude 3.5 Sonnet",
        description="Anthropic's mid-size model.",
        context_length=200000,
        max_output_tokens=8192,
        modality="text+image->text",
        pricing=CatalogPricing(prompt=0.000003, completion=0.000015),
    )


def leaderboard_entry(category, rating):
    return LeaderboardEntry(
        category=category,
        display_name="claude-3-5-sonnet-20241022",
        rating=rating,
        rating_upper=rating + 3,
        rating_lower=rating - 3,
        rank=4,
        votes=25000,
    )


class TestPricingPrecedence:
    """Test which source supplies prices."""

    def test_catalog_price_wins(self, merger, sonnet_catalog):
        config = ConfigEntry("sonnet", "anthropic/claude-3.5-sonnet")
        pricing = PricingEntry(input_cost_per_token=0.000005, output_cost_per_token=0.00002)

        model = merger.merge(config, sonnet_catalog, pricing, {})

        assert model.pricing.price_source == "openrouter"
        assert model.pricing.input_per_million == pytest.approx(3.0)
        assert model.pricing.output_per_million == pytest.approx(15.0)
        # the pricing table contributed nothing
        assert model.data_sources == ["config", "openrouter"]

    def test_pricing_table_fills_unpriced_catalog(self, merger):
        catalog = CatalogEntry(id="openai/gpt-4o", display_name="GPT-4o")
        pricing = PricingEntry(input_cost_per_token=0.0000025, output_cost_per_token=0.00001)

        model = merger.merge(None, catalog, pricing, {})

        assert model.pricing.price_source == "litellm"
        assert model.pricing.input_per_million == pytest.approx(2.5)
        assert model.pricing.output_per_million == pytest.approx(10.0)
        assert model.data_sources == ["openrouter", "litellm"]

    def test_cache_read_only_from_pricing_table(self, merger, sonnet_catalog):
        pricing = PricingEntry(cache_read_cost_per_token=0.0000003)

        model = merger.merge(None, sonnet_catalog, pricing, {})

        assert model.pricing.cache_read_per_token == pytest.approx(0.0000003)
        assert model.pricing.price_source == "openrouter"
        assert "litellm" in model.data_sources

    def test_no_prices_anywhere(self, merger):
        model = merger.merge(ConfigEntry("x", "custom/x"), None, None, {})

        assert model.pricing.input_per_million is None
        assert model.pricing.output_per_million is None
        assert model.pricing.price_source is None
        assert not model.pricing.has_price


class TestLocalModels:
    """Test the free-local-models override."""

    def test_local_model_is_free(self, merger):
        config = ConfigEntry("llama-local", "ollama/llama3:8b")
        catalog = CatalogEntry(
            id="vendor/llama-3-8b-instruct",
            display_name="Llama 3 8B Instruct",
            description="Instruction-tuned Llama 3.",
            context_length=8192,
            pricing=CatalogPricing(prompt=0.00000003, completion=0.00000006),
        )

        model = merger.merge(config, catalog, None, {}, model_id="ollama/llama3:8b")

        assert model.id == "ollama/llama3:8b"
        assert model.provider == "ollama"
        assert model.pricing.input_per_million == 0.0
        assert model.pricing.output_per_million == 0.0
        assert model.pricing.price_source is None
        assert model.context_length == 8192
        assert model.description == "Instruction-tuned Llama 3."
        assert model.data_sources == ["config", "openrouter"]

    def test_switch_off_keeps_catalog_price(self):
        merger = DataMerger(local_providers=("ollama",), free_local_models=False)
        config = ConfigEntry("llama-local", "ollama/llama3:8b")
        catalog = CatalogEntry(
            id="vendor/llama-3-8b-instruct",
            pricing=CatalogPricing(prompt=0.00000003, completion=0.00000006),
        )

        model = merger.merge(config, catalog, None, {}, model_id="ollama/llama3:8b")

        assert model.pricing.price_source == "openrouter"
        assert model.pricing.input_per_million == pytest.approx(0.03)

    def test_hosted_provider_not_free(self, merger, sonnet_catalog):
        model = merger.merge(ConfigEntry("s", "anthropic/claude-3.5-sonnet"), sonnet_catalog, None, {})
        assert model.pricing.input_per_million == pytest.approx(3.0)


class TestFieldPrecedence:
    """Test id, name, limits and capability merging."""

    def test_nothing_matched(self, merger):
        model = merger.merge(None, None, None, {})

        assert model.id == "unknown"
        assert model.name == "unknown"
        assert model.provider == "unknown"
        assert not model.is_configured
        assert model.data_sources == []

    def test_config_only(self, merger):
        model = merger.merge(ConfigEntry("my-model", "custom/my-model-v2"), None, None, {})

        assert model.id == "custom/my-model-v2"
        assert model.name == "my-model"
        assert model.configured_name == "my-model"
        assert model.is_configured
        assert model.context_length is None
        assert model.data_sources == ["config"]

    def test_catalog_id_and_name_win(self, merger, sonnet_catalog):
        model = merger.merge(ConfigEntry("sonnet", "anthropic/Claude-3.5-Sonnet"), sonnet_catalog, None, {})

        assert model.id == "anthropic/claude-3.5-sonnet"
        assert model.name == "Anthropic: Claude 3.5 Sonnet"
        assert model.configured_name == "sonnet"

    def test_context_length_fallbacks(self, merger):
        config = ConfigEntry("haiku", "bedrock/anthropic.claude-3-haiku-20240307-v1:0")

        model = merger.merge(config, None, PricingEntry(max_input_tokens=200000, max_tokens=4096), {})
        assert model.context_length == 200000
        assert model.data_sources == ["config", "litellm"]

        model = merger.merge(config, None, PricingEntry(max_tokens=4096), {})
        assert model.context_length == 4096

    def test_vision_from_input_modality(self, merger):
        model = merger.merge(None, CatalogEntry(id="a/vl", modality="text+image->text"), None, {})
        assert model.capabilities.vision

        model = merger.merge(None, CatalogEntry(id="a/painter", modality="text->image"), None, {})
        assert not model.capabilities.vision

    def test_capability_flags_from_pricing_table(self, merger, sonnet_catalog):
        pricing = PricingEntry(supports_function_calling=True, supports_prompt_caching=True)

        model = merger.merge(None, sonnet_catalog, pricing, {})

        assert model.capabilities.vision
        assert model.capabilities.function_calling
        assert model.capabilities.prompt_caching
        assert not model.capabilities.reasoning
        assert model.data_sources == ["openrouter", "litellm"]


class TestBenchmarks:
    """Test per-category benchmark merging."""

    def test_absent_category_stays_none(self, merger, sonnet_catalog):
        model = merger.merge(
            None,
            sonnet_catalog,
            None,
            {"text": leaderboard_entry("text", 1283.0), "code": None, "vision": None},
        )

        assert model.benchmark_rating("text") == 1283.0
        assert model.benchmarks["code"] is None
        assert model.benchmarks["vision"] is None
        assert model.data_sources == ["openrouter", "arena_text"]

    def test_to_dict_shape(self, merger, sonnet_catalog):
        model = merger.merge(
            ConfigEntry("sonnet", "anthropic/claude-3.5-sonnet"),
            sonnet_catalog,
            None,
            {"text": leaderboard_entry("text", 1283.0), "code": None},
        )

        data = model.to_dict()

        assert data["id"] == "anthropic/claude-3.5-sonnet"
        assert data["litellm_model_name"] == "sonnet"
        assert data["benchmarks"]["arena_text"]["rating"] == 1283.0
        assert data["benchmarks"]["arena_text"]["votes"] == 25000
        assert data["benchmarks"]["arena_code"] is None
        assert data["pricing"]["price_source"] == "openrouter"
        assert data["capabilities"]["vision"] is True
        assert data["data_sources"] == ["config", "openrouter", "arena_text"]
