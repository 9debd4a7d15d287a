"""
Command-line interface for the resolver feed.

Uses Typer to provide three operations, one per invocation:
- process: fetch, merge and persist the selected categories
- list: print stored resolvers of a category
- stats: print stored resolver counts per category

Supports loading .env files for RESOLVER_FEED_DB / RESOLVER_FEED_CONFIG.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import NoReturn

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
import typer

from .config import AppConfig, default_config_path, ensure_config, load_config
from .core.errors import ConfigError, StoreError
from .core.types import ALL_CATEGORIES, Category, RunReport
from .output.factory import build_sinks
from .runner import run_pipeline
from .store.resolver_store import ResolverStore, open_store
from .utils.logging import setup_logging

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


class Selector(str, Enum):
    PUBLIC = "public"
    TRUSTED = "trusted"
    ALL = ALL_CATEGORIES


@app.callback()
def main() -> None:
    """Aggregate public and trusted DNS resolver lists."""
    # Load environment variables from .env if available
    load_dotenv()


@app.command()
def process(
    ctx: typer.Context,
    public: bool = typer.Option(False, "--public", help="Process public sources."),
    trusted: bool = typer.Option(False, "--trusted", help="Process trusted sources."),
    all_categories: bool = typer.Option(False, "--all", help="Process every category."),
    db: bool | None = typer.Option(
        None, "--db/--no-db", help="Enable or disable saving into the SQLite store."
    ),
    files: bool | None = typer.Option(
        None, "--files/--no-files", help="Enable or disable writing flat files."
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to YAML config file."),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o", help="Directory for the flat files."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    progress: bool = typer.Option(False, "--progress/--no-progress"),
):
    """Fetch, merge and persist resolver lists.

    At least one of --public, --trusted or --all is required; without one
    the usage is printed and nothing is fetched.

    Args:
        public: Process the public category
        trusted: Process the trusted category
        all_categories: Process public and trusted
        db: Save into the SQLite store (defaults to store.enabled)
        files: Write flat files (defaults to output.write_files)
        config: Optional path to YAML config file
        output_dir: Override output.directory
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        progress: Whether to show a progress bar while fetching
    """
    categories = _selected_categories(public, trusted, all_categories)
    if not categories:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    cfg = _load(config)

    # Override with CLI options
    if db is not None:
        cfg.store.enabled = db
    if files is not None:
        cfg.output.write_files = files
    if output_dir is not None:
        cfg.output.directory = str(output_dir)
    if log_level:
        cfg.logging.level = log_level

    setup_logging(cfg.logging, Path(cfg.output.directory))

    store = _open(cfg) if cfg.store.enabled else None
    sinks = build_sinks(cfg, store)
    if not sinks:
        console.print("[yellow]No output enabled; results will not be saved.[/yellow]")

    reports = run_pipeline(categories, cfg, sinks, show_progress=progress, console=console)
    for report in reports:
        _render_report(report)


@app.command("list")
def list_resolvers(
    category: Selector = typer.Argument(..., help="public, trusted or all"),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite store path."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to YAML config file."),
):
    """Print stored resolvers of a category, sorted, one per line."""
    store = _store_for_query(config, db_path)
    try:
        tokens = store.list_tokens(category.value)
    except StoreError as exc:
        _fail(str(exc))
    for token in tokens:
        typer.echo(token)


@app.command()
def stats(
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite store path."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to YAML config file."),
):
    """Print the number of stored resolvers per category."""
    store = _store_for_query(config, db_path)
    try:
        result = store.stats()
    except StoreError as exc:
        _fail(str(exc))

    table = Table(title="Resolver store")
    table.add_column("Category")
    table.add_column("Count", justify="right")
    for name, count in sorted(result.counts.items()):
        table.add_row(name, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{result.total}[/bold]")
    console.print(table)


def _selected_categories(public: bool, trusted: bool, all_categories: bool) -> list[Category]:
    if all_categories:
        return list(Category)
    selected = []
    if public:
        selected.append(Category.PUBLIC)
    if trusted:
        selected.append(Category.TRUSTED)
    return selected


def _load(config: Path | None, bootstrap: bool = True) -> AppConfig:
    """Load the given config, or the per-user one (bootstrapped on first use).

    Without bootstrap a missing per-user config falls back to defaults.
    """
    try:
        if config is not None:
            return load_config(config)
        path = default_config_path()
        if not bootstrap:
            return load_config(path) if path.exists() else AppConfig()
        if ensure_config(path):
            console.print(f"Created default config at {escape(str(path))}")
        return load_config(path)
    except ConfigError as exc:
        _fail(str(exc))


def _open(cfg: AppConfig) -> ResolverStore:
    try:
        return open_store(cfg.store)
    except StoreError as exc:
        _fail(str(exc))


def _store_for_query(config: Path | None, db_path: Path | None) -> ResolverStore:
    cfg = _load(config, bootstrap=False)
    try:
        if db_path is not None:
            return ResolverStore(db_path, read_only=True)
        return open_store(cfg.store, read_only=True)
    except StoreError as exc:
        _fail(str(exc))


def _render_report(report: RunReport) -> None:
    console.print(
        f"[bold]{report.category.value}[/bold]: {report.unique_tokens} unique resolvers, "
        f"{len(report.failed_sources)}/{len(report.sources)} sources failed"
    )
    for item in report.failed_sources:
        console.print(f"  [red]source failed[/red] {escape(item.source.url)}: {escape(str(item.error))}")
    for sink in report.sinks:
        if sink.ok:
            console.print(f"  saved {sink.written} to {sink.sink}")
        else:
            console.print(f"  [red]{sink.sink} failed[/red]: {escape(sink.error or '')}")


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
