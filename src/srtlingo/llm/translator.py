"""Window resolution with recursive bisection on line-count mismatch."""

from __future__ import annotations

from typing import Callable

from srtlingo.core.errors import ErrorKind, TranslationError
from srtlingo.utils.console import console

MAX_DEPTH = 4

TranslateFn = Callable[[list[str]], list[str]]


def backfill(source: list[str], translated: list[str | None]) -> list[str]:
    """Align ``translated`` to ``source`` by position.

    Missing or ``None`` positions take the source line; surplus translated
    lines are dropped.
    """
    return [
        translated[i] if i < len(translated) and translated[i] is not None else line
        for i, line in enumerate(source)
    ]


def resolve_window(
    lines: list[str],
    translate_fn: TranslateFn,
    depth: int = 0,
    max_depth: int = MAX_DEPTH,
) -> list[str]:
    """Translate a window, guaranteeing the result has one line per input line.

    On a line-count mismatch the window is split in half and each half is
    resolved on its own, down to ``max_depth`` levels. When a mismatch can no
    longer be split (single line, or depth exhausted) the reply is backfilled
    position by position from the source lines. Any other error propagates.

    Args:
        lines: Source lines of the window.
        translate_fn: Sends lines to a provider; raises TranslationError.
        depth: Current bisection depth.
        max_depth: Deepest level at which a window is still split.

    Returns:
        Translated lines, ``len(result) == len(lines)``.
    """
    lines = list(lines)
    try:
        return translate_fn(lines)
    except TranslationError as e:
        if e.kind is not ErrorKind.LINE_COUNT_MISMATCH:
            raise
        got = len(e.lines or [])
        mismatch = e

    if len(lines) > 1 and depth < max_depth:
        console.print(
            f"[yellow]Line count mismatch ({len(lines)} expected, {got} returned) "
            f"at depth {depth}, retrying as two halves...[/yellow]"
        )
        mid = len(lines) // 2
        left = resolve_window(lines[:mid], translate_fn, depth + 1, max_depth)
        right = resolve_window(lines[mid:], translate_fn, depth + 1, max_depth)
        return left + right

    console.print(
        f"[yellow]Repaired line count mismatch ({len(lines)} expected, {got} returned) "
        f"at depth {depth} by keeping source lines for missing positions[/yellow]"
    )
    return backfill(lines, mismatch.lines or [])
