"""Split a document into fixed-size contiguous windows."""

from __future__ import annotations

from typing import Sequence

from srtlingo.core.models import Window


def window_count(total: int, size: int) -> int:
    """Number of windows needed to cover ``total`` lines."""
    return (total + size - 1) // size


def window_lines(lines: Sequence[str], size: int) -> list[Window]:
    """Split lines into consecutive windows of ``size``; the last may be shorter.

    The windows partition the input exactly: concatenating their lines in
    order gives back ``lines``.
    """
    if size < 1:
        raise ValueError(f"Window size must be positive, got {size}")
    return [
        Window(offset=i, lines=tuple(lines[i : i + size])) for i in range(0, len(lines), size)
    ]
