"""
Tests for environment-driven settings and the model-list config file
"""

import pytest

from model_reconciler.config import Settings
from model_reconciler.sources.config_file import ConfigFileProvider

from tests.fixtures.source_payloads import write_config


@pytest.fixture
def clean_env(monkeypatch):
    for key in (
        "CONFIG_PATH",
        "ARENA_CATEGORIES",
        "FREE_LOCAL_MODELS",
        "OLLAMA_FREE",
        "SOURCE_TIMEOUT",
        "LOCAL_MATCH_MIN_SCORE",
        "LOCAL_MODEL_PROVIDERS",
        "OPENROUTER_CACHE_TTL",
        "DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSettings:
    """Test Settings.from_env()."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.config_path == "config/config.yaml"
        assert settings.openrouter_cache_ttl == 300
        assert settings.litellm_pricing_cache_ttl == 1800
        assert settings.arena_categories == ("text", "code", "vision")
        assert settings.free_local_models is True
        assert settings.local_match_min_score is None
        assert settings.is_local_provider("Ollama")
        assert not settings.is_local_provider("openai")

    def test_overrides(self, clean_env):
        clean_env.setenv("CONFIG_PATH", "/etc/models.yaml")
        clean_env.setenv("ARENA_CATEGORIES", "Text, webdev")
        clean_env.setenv("OPENROUTER_CACHE_TTL", "60")
        clean_env.setenv("LOCAL_MATCH_MIN_SCORE", "1.5")
        clean_env.setenv("LOCAL_MODEL_PROVIDERS", "lmstudio")
        clean_env.setenv("DEBUG", "1")

        settings = Settings.from_env()

        assert settings.config_path == "/etc/models.yaml"
        assert settings.arena_categories == ("text", "webdev")
        assert settings.openrouter_cache_ttl == 60
        assert settings.local_match_min_score == 1.5
        assert settings.local_providers == ("lmstudio",)
        assert settings.debug is True

    def test_invalid_number_falls_back(self, clean_env):
        clean_env.setenv("SOURCE_TIMEOUT", "fast")
        clean_env.setenv("OPENROUTER_CACHE_TTL", "5m")
        settings = Settings.from_env()
        assert settings.source_timeout == 15.0
        assert settings.openrouter_cache_ttl == 300

    def test_ollama_free_alias(self, clean_env):
        clean_env.setenv("OLLAMA_FREE", "false")
        assert Settings.from_env().free_local_models is False

        clean_env.setenv("FREE_LOCAL_MODELS", "true")
        assert Settings.from_env().free_local_models is True

    def test_http_timeout(self):
        timeout = Settings.http_timeout(15.0)
        assert timeout.read == 15.0
        assert timeout.connect == 5.0

        assert Settings.http_timeout(2.0).connect == 1.0


class TestConfigFileProvider:
    """Test parsing of the model-list YAML."""

    def test_loads_entries_in_order(self, config_file):
        entries = ConfigFileProvider(config_file).load()

        assert [e.logical_name for e in entries] == [
            "gpt-4o",
            "sonnet",
            "llama-local",
            "mistral-all",
            "bedrock-haiku",
        ]
        assert entries[2].model_identifier == "local/llama3:8b"
        assert entries[3].is_wildcard
        assert entries[3].wildcard_prefix == "mistralai/"

    def test_missing_file_is_empty(self, tmp_path):
        assert ConfigFileProvider(tmp_path / "absent.yaml").load() == []

    def test_file_without_model_list_is_empty(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("general_settings:\n  master_key: sk-1234\n")
        assert ConfigFileProvider(path).load() == []

    def test_unparseable_file_is_empty(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("model_list: [unclosed\n")
        assert ConfigFileProvider(path).load() == []

    def test_entries_without_model_skipped(self, tmp_path):
        path = write_config(
            tmp_path / "config.yaml",
            [
                {"model_name": "no-params"},
                {"model_name": "empty", "litellm_params": {"api_key": "x"}},
                {"litellm_params": {"model": "groq/llama-3.1-8b-instant"}},
                "not-a-mapping",
            ],
        )

        entries = ConfigFileProvider(path).load()

        assert len(entries) == 1
        assert entries[0].logical_name == "groq/llama-3.1-8b-instant"
        assert entries[0].model_identifier == "groq/llama-3.1-8b-instant"
