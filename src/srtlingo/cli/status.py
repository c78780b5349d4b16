"""srtlingo status command — show configured models and missing credentials."""

from __future__ import annotations

import typer
from rich.table import Table

from srtlingo.core.config import load_config
from srtlingo.llm.client import check_model
from srtlingo.utils.console import console


def status() -> None:
    """Check that every configured provider has its credentials."""
    config = load_config()

    table = Table(title="Providers")
    table.add_column("Role", style="bold cyan")
    table.add_column("Model")
    table.add_column("Missing keys")

    rows = [("primary", config.llm.model)]
    rows += [(f"secondary #{i}", m) for i, m in enumerate(config.llm.secondary_models, 1)]

    ok = True
    for role, model in rows:
        missing = check_model(model)
        ok = ok and not missing
        table.add_row(role, model, ", ".join(missing) if missing else "[green]none[/green]")
    console.print(table)

    tmdb = "configured" if config.tmdb.configured else "[dim]not configured[/dim]"
    console.print(f"[bold]TMDB:[/bold] {tmdb}")
    auth = "enabled" if config.auth.enabled else "disabled"
    console.print(f"[bold]Allow-list:[/bold] {auth}")
    console.print(f"[bold]Window size:[/bold] {config.translation.window_size} lines")

    if not ok:
        raise typer.Exit(1)
