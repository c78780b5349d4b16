"""Batch orchestrator — window a document, translate each window, collect in order."""

from __future__ import annotations

import time
from typing import Callable, Generator, Protocol

from srtlingo.core.config import TranslationConfig
from srtlingo.core.errors import ErrorKind, TranslationError
from srtlingo.core.events import EventCallback, ProgressEvent
from srtlingo.core.models import JobResult, MovieContext, TranslationJob
from srtlingo.core.windower import window_lines
from srtlingo.llm.translator import resolve_window
from srtlingo.utils.console import console


class Translator(Protocol):
    last_model: str | None

    def __call__(
        self, lines: list[str], target_language: str, context: MovieContext | None = None
    ) -> list[str]: ...


def iter_job(
    job: TranslationJob,
    translator: Translator,
    config: TranslationConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> Generator[ProgressEvent, None, JobResult]:
    """Translate a job window by window, yielding progress as it goes.

    Windows run strictly one after another. The first window that cannot be
    resolved stops the job; lines accumulated so far are kept on the result,
    which is marked failed.

    Yields:
        One ProgressEvent per resolved window.

    Returns:
        The JobResult (available as ``StopIteration.value``).
    """
    total = len(job.lines)
    output: list[str] = []

    if total == 0:
        return JobResult(
            state="failed",
            lines=output,
            target_language=job.target_language,
            error=TranslationError(ErrorKind.INVALID_REQUEST, "No lines provided"),
        )

    windows = window_lines(job.lines, job.window_size)
    count = len(windows)
    model: str | None = None

    def translate_fn(lines: list[str]) -> list[str]:
        return translator(lines, job.target_language, job.context)

    for i, window in enumerate(windows):
        if i > 0 and config.pacing_delay > 0:
            sleep(config.pacing_delay)

        try:
            resolved = resolve_window(list(window.lines), translate_fn, max_depth=config.max_depth)
        except TranslationError as e:
            console.print(
                f"[red]Window {i + 1}/{count} failed ({e.kind.value}):[/red] {e.message}"
            )
            return JobResult(
                state="failed",
                lines=output,
                target_language=job.target_language,
                window_count=count,
                windows_completed=i,
                model=model,
                error=e,
            )

        output.extend(resolved)
        model = getattr(translator, "last_model", None) or model
        yield ProgressEvent(
            processed_lines=len(output),
            total_lines=total,
            window_index=i + 1,
            window_count=count,
            message=f"Translated chunk {i + 1} of {count} ({len(output)}/{total} lines)",
            model=model,
        )

    return JobResult(
        state="done",
        lines=output,
        target_language=job.target_language,
        window_count=count,
        windows_completed=count,
        model=model,
    )


def run_job(
    job: TranslationJob,
    translator: Translator,
    config: TranslationConfig,
    on_event: EventCallback | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> JobResult:
    """Run a job to completion, pushing progress events to ``on_event``."""
    console.print(
        f"[bold]Translating {len(job.lines)} lines to {job.target_language} "
        f"in {job.window_size}-line batches...[/bold]"
    )
    events = iter_job(job, translator, config, sleep=sleep)
    while True:
        try:
            event = next(events)
        except StopIteration as stop:
            result = stop.value
            break
        if on_event:
            on_event(event)

    if result.ok:
        console.print(
            f"[green]Translation complete:[/green] {len(result.lines)} lines "
            f"in {result.window_count} batches ({result.model})"
        )
    else:
        console.print(
            f"[red]Translation failed[/red] after {result.windows_completed}/"
            f"{result.window_count} batches: {result.error.message}"
        )
    return result
