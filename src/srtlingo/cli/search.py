"""srtlingo search command — look up a movie for translation context."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from srtlingo.core.config import load_config
from srtlingo.core.errors import ConfigError, ServiceError
from srtlingo.services.metadata import TMDBClient, guess_query_from_filename
from srtlingo.utils.console import console


def search(
    query: Annotated[
        str,
        typer.Argument(help="Movie title, optionally with a year: 'Dangal (2016)'."),
    ],
    from_filename: Annotated[
        bool,
        typer.Option("--from-filename", help="Treat the query as a subtitle filename."),
    ] = False,
) -> None:
    """Search TMDB for a movie."""
    config = load_config()
    if from_filename:
        query = guess_query_from_filename(query)

    try:
        client = TMDBClient(config.tmdb)
    except ConfigError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    try:
        matches = client.search(query)
    except ServiceError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()

    if not matches:
        console.print(f"[yellow]No movies found for:[/yellow] {query}")
        raise typer.Exit(1)

    table = Table(title=f"Results for '{query}'")
    table.add_column("ID", style="bold cyan")
    table.add_column("Title")
    table.add_column("Year", width=6)
    table.add_column("Rating", width=6)
    for match in matches:
        rating = f"{match.vote_average:.1f}" if match.vote_average is not None else "-"
        table.add_row(str(match.id), match.title, match.year or "-", rating)
    console.print(table)

    first = matches[0]
    if first.overview:
        console.print(f"\n[bold]{first.title}[/bold]: [dim]{first.overview}[/dim]")
