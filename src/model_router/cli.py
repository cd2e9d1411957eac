"""CLI interface for model-router.

Settings come from ~/.model-router/config/ (see model_router.config);
every command accepts --config-dir to point somewhere else.

Quick start:
    model-router route "Write a Python function to sort an array"
    model-router route "prove that sqrt(2) is irrational" -v
    model-router route "hello" --json
    model-router compare "refactor this module" -m openrouter/qwen/qwen3-coder:free -m anthropic/claude-sonnet-4-5
    model-router decisions -n 10
    model-router config
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from model_router import __version__
from model_router.config import ConfigError
from model_router.plugin import ModelRouterPlugin

app = typer.Typer(
    name="model-router",
    help="Pick the right LLM for each request — free when possible, premium when needed",
    no_args_is_help=True,
)

console = Console()

ConfigDirOption = typer.Option(
    None, "--config-dir", "-c",
    help="Base directory holding config/ (default: ~/.model-router)")


@app.callback()
def main(
    log_level: str = typer.Option(
        "warning", "--log-level", "-l", help="debug|info|warning|error"),
) -> None:
    """Route requests to free or paid models by complexity."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_plugin(config_dir: Path | None) -> ModelRouterPlugin:
    plugin = ModelRouterPlugin()
    try:
        plugin.init(config_dir)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)
    return plugin


@app.command()
def route(
    prompt: str = typer.Argument(..., help="Request text to route"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show dimension scores and timing"),
    paid: bool = typer.Option(
        False, "--paid", help="Ignore free models and pick the paid one"),
    json_output: bool = typer.Option(
        False, "--json", help="Print the raw routing result as JSON"),
    features: bool = typer.Option(
        False, "--features", help="Also show auxiliary message features"),
    config_dir: Path = ConfigDirOption,
) -> None:
    """Route a single prompt and show the decision.

    Examples:
        model-router route "Hello, how are you?"
        model-router route "design a trading platform" --paid -v
    """
    plugin = _load_plugin(config_dir)
    result = plugin.route(prompt, prefer_free=False if paid else None)

    if json_output:
        payload = result.to_dict()
        if features:
            payload["features"] = plugin.router.classifier.extract_features(prompt).to_dict()
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print(Markdown(plugin.format_result(result, verbose)))

    if features:
        table = Table(title="Message Features", show_header=False)
        table.add_column("Feature", style="bold")
        table.add_column("Value", justify="right")
        for name, value in plugin.router.classifier.extract_features(prompt).to_dict().items():
            table.add_row(name, str(value))
        console.print(table)


@app.command()
def compare(
    prompt: str = typer.Argument(..., help="Request text to score models for"),
    models: list[str] = typer.Option(
        None, "--model", "-m", help="Candidate model (repeatable). Default: configured free + premium lists"),
    config_dir: Path = ConfigDirOption,
) -> None:
    """Rank candidate models for a prompt by capability score.

    Example:
        model-router compare "fix this bug" -m openrouter/qwen/qwen3-coder:free -m anthropic/claude-opus-4-5
    """
    plugin = _load_plugin(config_dir)
    scores = plugin.score_models(prompt, models or None)

    if not scores:
        console.print("[yellow]No candidate models configured.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Model Suitability")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Model", style="cyan")
    table.add_column("Score", justify="right", style="green")

    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    for i, (model, score) in enumerate(ranked, 1):
        table.add_row(str(i), model, f"{score:.4f}")

    console.print(table)


@app.command()
def decisions(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of decisions to show"),
    config_dir: Path = ConfigDirOption,
) -> None:
    """Show the most recent routing decisions from the decision log."""
    plugin = _load_plugin(config_dir)
    records = plugin.decision_logger.get_recent_decisions(limit)

    if not records:
        console.print("[dim]No routing decisions logged yet.[/dim]")
        return

    table = Table(title=f"Recent Decisions (last {len(records)})")
    table.add_column("Time", style="dim")
    table.add_column("Channel")
    table.add_column("Tier", style="bold")
    table.add_column("Model", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("ms", justify="right")

    for record in records:
        table.add_row(
            record.timestamp[:19],
            record.channel,
            record.complexity,
            record.selected_model,
            f"{record.total_score:.3f}",
            f"{record.execution_time_ms:.2f}",
        )

    console.print(table)


@app.command()
def config(
    config_dir: Path = ConfigDirOption,
) -> None:
    """Show the loaded dimensions, tiers and thresholds."""
    plugin = _load_plugin(config_dir)
    manager = plugin.config_manager
    settings = manager.get_config()
    snapshot = manager.snapshot()

    console.print(Panel(
        f"[bold]Strategy:[/bold] {settings.strategy}   "
        f"[bold]Enabled:[/bold] {settings.enabled}   "
        f"[bold]Config dir:[/bold] {manager.config_dir}",
        title="model-router",
        border_style="cyan",
    ))

    dims = Table(title="Dimensions")
    dims.add_column("Name", style="cyan")
    dims.add_column("Weight", justify="right")
    dims.add_column("Max", justify="right")
    dims.add_column("Patterns", justify="right")
    for d in snapshot.dimensions.dimensions:
        dims.add_row(d.name, f"{d.weight:.3f}", str(d.max), str(len(d.patterns)))
    console.print(dims)

    tiers = Table(title="Tiers")
    tiers.add_column("Tier", style="bold")
    tiers.add_column("Free", style="green")
    tiers.add_column("Paid", style="yellow")
    for tier, tc in snapshot.tiers.tiers.items():
        tiers.add_row(tier.value, tc.full_free or "-", tc.full_paid)
    console.print(tiers)

    t = snapshot.tiers.thresholds
    thresholds = Table(title="Thresholds", show_header=False)
    thresholds.add_column("Name", style="bold")
    thresholds.add_column("Value", justify="right")
    for name, value in (
        ("REASONING_TRIGGER", t.reasoning_trigger),
        ("CODING_TRIGGER", t.coding_trigger),
        ("CREATIVE_TRIGGER", t.creative_trigger),
        ("MULTISTEP_TRIGGER", t.multistep_trigger),
        ("SIMPLE_MAX", t.simple_max),
        ("COMPLEX_MIN", t.complex_min),
        ("PREMIUM_MIN", t.premium_min),
    ):
        thresholds.add_row(name, f"{value:.2f}")
    console.print(thresholds)


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"model-router v{__version__}")


if __name__ == "__main__":
    app()
