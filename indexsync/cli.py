"""CLI entry point for indexsync."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from indexsync.config import IndexSyncConfig, load_config
from indexsync.config.loader import DEFAULT_CONFIG_TEMPLATE
from indexsync.engine import SearchEngine
from indexsync.errors import IndexSyncError
from indexsync.index.client import create_client
from indexsync.lifecycle.version import fetch_server_version, version_at_least
from indexsync.models import PopulateOptions, PopulationReport
from indexsync.population import PopulationOrchestrator
from indexsync.store import SQLiteRecordStore

app = typer.Typer(
    name="indexsync",
    help="Keep Elasticsearch indices in step with the archival record store.",
)

config_app = typer.Typer(help="Manage indexsync configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: IndexSyncConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _get_config() -> IndexSyncConfig:
    if _config is None:
        return load_config()
    return _config


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _configure_logging(cfg: IndexSyncConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(show_path=False)
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler], force=True)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to indexsync.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _build_engine(cfg: IndexSyncConfig, store: SQLiteRecordStore | None = None) -> SearchEngine:
    return SearchEngine(cfg, client=create_client(cfg.server), store=store)


def _split_types(values: list[str] | None) -> list[str]:
    """Accept both repeated options and comma-separated lists."""
    types: list[str] = []
    for value in values or []:
        types.extend(t.strip().lower() for t in value.split(",") if t.strip())
    return types


def _display_report(report: PopulationReport) -> None:
    table = Table(title=f"Indices ({len(report.indices)})")
    table.add_column("Index", style="cyan")
    for name in report.indices:
        table.add_row(name)
    rprint(table)

    summary = (
        f"[bold]Documents:[/bold] {report.total}\n"
        f"[bold]Elapsed:[/bold]   {report.elapsed:.2f}s\n"
        f"[bold]Errors:[/bold]    {len(report.errors)}"
    )
    border = "red" if report.errors else "green"
    rprint(Panel(summary, title="Population", border_style=border))
    for error in report.errors:
        rprint(f"  [red]error:[/red] {error}")


@app.command()
def populate(
    exclude_types: Annotated[
        list[str] | None,
        typer.Option("--exclude-types", "-x", help="Types to skip (repeatable or comma-separated)"),
    ] = None,
    update: bool = typer.Option(False, "--update", help="Keep existing indices and mappings"),
) -> None:
    """Define indices and index every record from the store."""
    cfg = _get_config()
    options = PopulateOptions(exclude_types=_split_types(exclude_types), update=update)

    store = SQLiteRecordStore(cfg.store.path)
    try:
        with _build_engine(cfg, store) as engine:
            report = PopulationOrchestrator(engine).populate(options)
    except IndexSyncError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    finally:
        store.close()

    if not report.indices:
        rprint("[yellow]No indices to populate.[/yellow]")
        raise typer.Exit(0)
    _display_report(report)
    if report.errors:
        raise typer.Exit(1)


@app.command("check-version")
def check_version_cmd() -> None:
    """Compare the server version against the supported minimum (uncached)."""
    cfg = _get_config()
    minimum = cfg.version_check.min_server_version
    try:
        version = fetch_server_version(create_client(cfg.server))
    except IndexSyncError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not version_at_least(version, minimum):
        rprint(f"[red]Incompatible:[/red] server {version}, minimum {minimum}")
        raise typer.Exit(1)
    rprint(f"[green]Compatible:[/green] server {version}, minimum {minimum}")


@app.command()
def indices() -> None:
    """List logical types and their physical indices."""
    cfg = _get_config()
    try:
        engine = _build_engine(cfg)
        rows = [(name, index.name, index.exists()) for name, index in engine.registry]
    except IndexSyncError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Indices ({len(rows)})")
    table.add_column("Type", style="cyan")
    table.add_column("Physical index", style="green")
    table.add_column("Exists", justify="center")
    for name, physical, exists in rows:
        table.add_row(name, physical, "[green]yes[/green]" if exists else "[red]no[/red]")
    rprint(table)


@app.command()
def optimize() -> None:
    """Force-merge every index."""
    cfg = _get_config()
    try:
        _build_engine(cfg).optimize()
    except IndexSyncError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint("[green]Indices optimized.[/green]")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default indexsync.yaml in current directory."""
    target = Path("indexsync.yaml")
    if target.exists() and not force:
        rprint("[yellow]indexsync.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
