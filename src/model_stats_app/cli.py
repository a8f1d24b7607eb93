"""
Command-line view of the reconciled model list.

    model-reconciler               configured models
    model-reconciler --all         plus every other catalog model
    model-reconciler --provider ollama --sort arena_text:desc
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from model_reconciler.config import Settings
from model_reconciler.models import MergedModel, ReconciliationResult
from model_reconciler.service import ModelReconciliationService
from model_stats_app.main import load_env_files
from model_stats_app.routes import sort_models

console = Console()


def _price(value: Optional[float]) -> str:
    return "-" if value is None else f"${value:,.2f}"


def _rating(model: MergedModel, category: str) -> str:
    rating = model.benchmark_rating(category)
    return "-" if rating is None else f"{rating:.0f}"


def build_table(models: List[MergedModel], categories: List[str]) -> Table:
    table = Table(title=f"Reconciled models ({len(models)})", show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Provider", style="magenta")
    table.add_column("Context", justify="right")
    table.add_column("In $/M", justify="right", style="green")
    table.add_column("Out $/M", justify="right", style="green")
    for category in categories:
        table.add_column(f"Arena {category}", justify="right", style="yellow")
    table.add_column("Sources", style="dim")

    for model in models:
        table.add_row(
            model.id,
            model.name,
            model.provider,
            f"{model.context_length:,}" if model.context_length else "-",
            _price(model.pricing.input_per_million),
            _price(model.pricing.output_per_million),
            *(_rating(model, category) for category in categories),
            ", ".join(model.data_sources),
        )
    return table


async def _run(args: argparse.Namespace, settings: Settings) -> ReconciliationResult:
    service = ModelReconciliationService(settings=settings)
    return await service.get_all_models(include_unconfigured=args.all)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show reconciled model data.")
    parser.add_argument(
        "--all", action="store_true", help="Include catalog models that are not configured."
    )
    parser.add_argument("--config", type=str, help="Path to the model-list YAML file.")
    parser.add_argument("--provider", type=str, help="Only show models from this provider.")
    parser.add_argument("--sort", type=str, help="Sort as field:dir, e.g. input_price:asc.")
    parser.add_argument("--debug", action="store_true", help="Trace match decisions.")
    args = parser.parse_args(argv)

    load_env_files(Path.cwd())
    settings = Settings.from_env()
    if args.config:
        settings.config_path = args.config

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    result = asyncio.run(_run(args, settings))

    models = result.models
    if args.provider:
        models = [m for m in models if m.provider.lower() == args.provider.lower()]
    models = sort_models(models, args.sort)

    console.print(build_table(models, list(settings.arena_categories)))
    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
