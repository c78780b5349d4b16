"""srtlingo translate command — translate an SRT file in batches."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from srtlingo.core.config import load_config, validate_translation
from srtlingo.core.errors import ConfigError
from srtlingo.core.models import ModelPreference, MovieContext, TranslationJob
from srtlingo.utils.console import console


def translate(
    subtitle_file: Annotated[
        Path,
        typer.Argument(help="Path to an SRT subtitle file."),
    ],
    to: Annotated[
        Optional[str],
        typer.Option(
            "--to", "-t", help="Target language code or label (see 'srtlingo languages')."
        ),
    ] = None,
    preference: Annotated[
        ModelPreference,
        typer.Option("--model-preference", "-m", help="Which provider to use."),
    ] = ModelPreference.AUTO,
    model: Annotated[
        Optional[str],
        typer.Option("--model", help="Primary LiteLLM model (e.g. gpt-4.1)."),
    ] = None,
    window_size: Annotated[
        Optional[int],
        typer.Option("--window-size", "-w", min=1, help="Lines per batch."),
    ] = None,
    title: Annotated[
        Optional[str],
        typer.Option("--title", help="Movie title, for consistent names and terminology."),
    ] = None,
    year: Annotated[
        Optional[str],
        typer.Option("--year", help="Movie release year."),
    ] = None,
    overview: Annotated[
        Optional[str],
        typer.Option("--overview", help="Short synopsis of the movie."),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path."),
    ] = None,
) -> None:
    """Translate a subtitle file, preserving its line structure."""
    from srtlingo.core.languages import resolve_language
    from srtlingo.core.pipeline import run_job
    from srtlingo.llm.provider import build_translator
    from srtlingo.subtitles.converter import (
        read_document,
        structure_drift,
        translated_filename,
        write_document,
    )

    if not subtitle_file.is_file():
        console.print(f"[red]File not found:[/red] {subtitle_file}")
        raise typer.Exit(1)

    config = load_config(**{"llm.model": model, "translation.window_size": window_size})

    try:
        target = resolve_language(to or config.translation.target_language)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        validate_translation(config)
        translator = build_translator(config, preference)
    except ConfigError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Loading subtitles:[/bold] {subtitle_file}")
    lines = read_document(subtitle_file)
    console.print(f"[bold]Lines:[/bold] {len(lines)}")

    job = TranslationJob(
        lines=lines,
        target_language=target,
        context=MovieContext(title=title, year=year, overview=overview) if title else None,
        model_preference=preference,
        window_size=config.translation.window_size,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total} lines"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Translating to {target}", total=len(lines))
        result = run_job(
            job,
            translator,
            config.translation,
            on_event=lambda event: progress.update(task, completed=event.processed_lines),
        )

    if not result.ok:
        error = result.error
        console.print(f"[red]Nothing saved:[/red] {error.kind.value}: {error.message}")
        raise typer.Exit(1)

    drift = structure_drift(lines, result.lines)
    if drift:
        shown = ", ".join(str(i + 1) for i in drift[:10])
        console.print(
            f"[yellow]{len(drift)} index/timecode/blank lines changed by the model "
            f"(lines {shown}{', ...' if len(drift) > 10 else ''})[/yellow]"
        )

    sub_path = output or subtitle_file.with_name(translated_filename(subtitle_file.name, target))
    write_document(result.lines, sub_path)
    console.print(f"[green]Saved:[/green] {sub_path}")
