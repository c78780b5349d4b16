"""Subtitle document utilities.

Translation works on raw lines (index, timecode, dialogue and blank lines
alike), so documents are read and written as plain line sequences. Cue
parsing and WebVTT conversion go through pysubs2 and are only used for the
video preview.
"""

from __future__ import annotations

import re
from pathlib import Path

import pysubs2

from srtlingo.core.models import SubtitleCue

TIMECODE_RE = re.compile(r"(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})")
_INDEX_RE = re.compile(r"^\d+$")


def is_timecode(line: str) -> bool:
    """Whether a line is an SRT timing line (HH:MM:SS,mmm --> HH:MM:SS,mmm)."""
    return TIMECODE_RE.search(line) is not None


def is_index(line: str) -> bool:
    return _INDEX_RE.match(line.strip()) is not None


def split_lines(text: str) -> tuple[str, ...]:
    """Split subtitle text into its ordered lines, dropping a leading BOM."""
    return tuple(text.lstrip("\ufeff").splitlines())


def read_document(path: Path) -> tuple[str, ...]:
    """Load a subtitle file as an ordered sequence of lines."""
    return split_lines(Path(path).read_text(encoding="utf-8-sig"))


def write_document(lines: list[str] | tuple[str, ...], path: Path) -> Path:
    """Write lines back out, one per line, with a trailing newline."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def parse_cues(text: str) -> list[SubtitleCue]:
    """Parse SRT text into timed cues.

    Blocks without a timecode are skipped; markup is stripped.
    """
    if not text.strip():
        return []
    subs = pysubs2.SSAFile.from_string(text.lstrip("\ufeff"), format_="srt")
    return [
        SubtitleCue(
            text=event.plaintext,
            start=event.start / 1000.0,
            end=event.end / 1000.0,
            index=i,
        )
        for i, event in enumerate(subs.events, 1)
        if not event.is_comment
    ]


def srt_to_vtt(text: str) -> str:
    """Convert SRT text to WebVTT for an HTML ``<track>`` element."""
    if not text.strip():
        return "WEBVTT\n"
    subs = pysubs2.SSAFile.from_string(text.lstrip("\ufeff"), format_="srt")
    return subs.to_string("vtt")


def translated_filename(source_name: str, language_label: str) -> str:
    """Name for a translated download, e.g. "movie.srt" -> "movie-Polish.srt"."""
    base = re.sub(r"\.srt$", "", source_name, flags=re.IGNORECASE) if source_name else ""
    return f"{base or 'subtitles'}-{language_label or 'translated'}.srt"


def structure_drift(source: list[str] | tuple[str, ...], translated: list[str]) -> list[int]:
    """Return line numbers (0-based) whose index/timecode/blank structure changed.

    Lines that must pass through verbatim are compared byte for byte.
    """
    changed = []
    for i, (src, dst) in enumerate(zip(source, translated)):
        if (not src.strip() or is_index(src) or is_timecode(src)) and src != dst:
            changed.append(i)
    return changed
