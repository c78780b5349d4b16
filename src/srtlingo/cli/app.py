"""srtlingo CLI entry point."""

from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from srtlingo import __version__
from srtlingo.cli.languages import languages
from srtlingo.cli.search import search
from srtlingo.cli.serve import serve
from srtlingo.cli.status import status
from srtlingo.cli.translate import translate

app = typer.Typer(
    name="srtlingo",
    help="srtlingo — Subtitle translation with LLMs, previewed next to your video.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"srtlingo {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """srtlingo — Subtitle translation with LLMs, previewed next to your video."""
    # Load .env file for API keys (OPENAI_API_KEY, GEMINI_API_KEY, TMDB settings, etc.)
    # Does not override existing env vars — shell exports take precedence
    load_dotenv(override=False)


app.command("translate")(translate)
app.command("serve")(serve)
app.command("search")(search)
app.command("languages")(languages)
app.command("status")(status)
