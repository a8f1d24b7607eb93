"""
Tests for the command-line table view
"""

import httpx
import respx
from rich.console import Console

from model_reconciler.models import MergedModel, ModelPricing
from model_stats_app import cli

from tests.fixtures.source_payloads import (
    ARENA_TEXT_HTML,
    ARENA_URL,
    CATALOG_PAYLOAD,
    CATALOG_URL,
    PRICING_PAYLOAD,
    PRICING_URL,
)


def render(table) -> str:
    console = Console(record=True, width=250)
    console.print(table)
    return console.export_text()


class TestBuildTable:
    """Test the rich table layout."""

    def test_columns_per_category(self):
        table = cli.build_table([], ["text", "code"])
        headers = [column.header for column in table.columns]
        assert headers == [
            "ID",
            "Name",
            "Provider",
            "Context",
            "In $/M",
            "Out $/M",
            "Arena text",
            "Arena code",
            "Sources",
        ]

    def test_missing_values_render_as_dash(self):
        model = MergedModel(
            id="local/phi3:mini",
            name="phi-local",
            provider="local",
            pricing=ModelPricing(input_per_million=0.0),
            benchmarks={"text": None},
            data_sources=["config"],
        )
        output = render(cli.build_table([model], ["text"]))
        assert "local/phi3:mini" in output
        assert "$0.00" in output
        assert "Reconciled models (1)" in output


class TestMain:
    """Test the CLI entry point end to end over mocked sources."""

    def test_prints_configured_models(self, monkeypatch, tmp_path, config_file):
        monkeypatch.chdir(tmp_path)
        for key in ("CONFIG_PATH", "ARENA_CATEGORIES", "SOURCE_TIMEOUT", "ARENA_TIMEOUT"):
            monkeypatch.delenv(key, raising=False)
        console = Console(record=True, width=250)
        monkeypatch.setattr(cli, "console", console)

        with respx.mock(assert_all_called=False) as mock:
            mock.get(CATALOG_URL).mock(return_value=httpx.Response(200, json=CATALOG_PAYLOAD))
            mock.get(PRICING_URL).mock(return_value=httpx.Response(200, json=PRICING_PAYLOAD))
            mock.get(f"{ARENA_URL}/text").mock(
                return_value=httpx.Response(200, text=ARENA_TEXT_HTML)
            )
            mock.get(f"{ARENA_URL}/code").mock(return_value=httpx.Response(503))
            mock.get(f"{ARENA_URL}/vision").mock(return_value=httpx.Response(503))

            exit_code = cli.main(
                ["--config", config_file, "--provider", "openai", "--sort", "name:asc"]
            )

        output = console.export_text()
        assert exit_code == 0
        assert "openai/gpt-4o" in output
        assert "anthropic/claude-3.5-sonnet" not in output
        assert "1285" in output
        assert "arena_code: HTTP 503" in output
        assert "arena_vision: HTTP 503" in output
