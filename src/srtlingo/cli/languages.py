"""srtlingo languages command — list target languages."""

from __future__ import annotations

from rich.table import Table

from srtlingo.core.languages import RTL_LANGUAGES, TARGET_LANGUAGES
from srtlingo.utils.console import console


def languages() -> None:
    """List the languages subtitles can be translated into."""
    table = Table(title=f"Target Languages ({len(TARGET_LANGUAGES)})")
    table.add_column("Code", style="bold cyan", width=8)
    table.add_column("Label", width=26)
    table.add_column("Script", width=6)

    for code, label in TARGET_LANGUAGES.items():
        table.add_row(code, label, "RTL" if code in RTL_LANGUAGES else "-")

    console.print(table)
    console.print(
        "\n[dim]Pass either the code or the label to 'srtlingo translate --to'.[/dim]"
    )
