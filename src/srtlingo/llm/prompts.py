"""Prompt templates and response parsing for subtitle translation."""

from __future__ import annotations

import json
import re

from srtlingo.core.errors import ErrorKind, TranslationError
from srtlingo.core.models import MovieContext

TRANSLATION_SYSTEM = """\
You are an expert subtitle translator. Translate naturally (not literally) \
while preserving story and tone into the target language.
{movie_context}
Input is an array of raw subtitle lines (SRT-style). Preserve structure exactly:
- Keep line count identical to input; one output line per input line, same order.
- If a line is an index, timecode, blank, or contains markup (e.g., <i>…</i>), \
return it unchanged (verbatim); translate only the dialogue text.
- Do NOT add, remove, merge, split, reorder, trim, wrap, or reflow lines; \
keep spacing and tags exactly as provided.
- Respond as strict JSON: {{"lines":["line1","line2",...]}} with the SAME length as input.
"""

TRANSLATION_INSTRUCTIONS = (
    "Translate lines to {target_language}; preserve indices/timecodes/blank/markup "
    "lines verbatim; output JSON with exactly {count} lines."
)

GUESS_MOVIE_SYSTEM = "Return only JSON with title and optional year."

GUESS_MOVIE_USER = """\
You are a movie title guesser. Given a subtitle filename, infer the most likely \
movie title and year.
Respond strictly as JSON: {{"title":"...","year":"...."}}.
If unsure, return a best guess; omit year if unknown.
Filename: {filename}
"""

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def format_movie_context(context: MovieContext | None) -> str:
    """Describe the movie for the system prompt, or "" without context."""
    if context is None or not context.title:
        return ""
    title = f'"{context.title}"'
    if context.year:
        title += f" ({context.year})"
    parts = [f"Movie context: {title}. Keep names and terminology consistent with this film."]
    if context.overview:
        parts.append(f"Synopsis: {context.overview}")
    return "\n".join(parts) + "\n"


def build_translation_messages(
    lines: list[str],
    target_language: str,
    context: MovieContext | None = None,
) -> list[dict[str, str]]:
    """Build the chat messages for translating one window."""
    payload: dict = {
        "instructions": TRANSLATION_INSTRUCTIONS.format(
            target_language=target_language, count=len(lines)
        ),
        "targetLanguage": target_language,
        "expectedCount": len(lines),
    }
    if context is not None:
        payload["movieContext"] = {
            "title": context.title,
            "year": context.year,
            "synopsis": context.overview,
        }
    payload["lines"] = list(lines)

    return [
        {
            "role": "system",
            "content": TRANSLATION_SYSTEM.format(movie_context=format_movie_context(context)),
        },
        {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
    ]


def _decode_json(response: str) -> object:
    text = response.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)
    return json.loads(text)


def _coerce_line(line: object) -> str | None:
    if isinstance(line, str):
        return line
    if isinstance(line, (int, float)) and not isinstance(line, bool):
        # Index lines sometimes come back as bare numbers
        return str(line)
    return None


def parse_lines_response(response: str, expected_count: int) -> list[str]:
    """Parse a ``{"lines": [...]}`` reply and check its length.

    Raises:
        TranslationError: NON_JSON_RESPONSE if the reply is not JSON,
            MISSING_LINES_FIELD if ``lines`` is absent or not a list, or if a
            reply of the right length holds a non-string line,
            LINE_COUNT_MISMATCH (with the parsed lines attached, ``None`` for
            unusable entries) if the count differs from ``expected_count``.
    """
    try:
        parsed = _decode_json(response)
    except (json.JSONDecodeError, TypeError) as e:
        raise TranslationError(
            ErrorKind.NON_JSON_RESPONSE, "Model returned non-JSON output"
        ) from e

    lines = parsed.get("lines") if isinstance(parsed, dict) else None
    if not isinstance(lines, list):
        raise TranslationError(ErrorKind.MISSING_LINES_FIELD, "Model response missing lines array")

    result = [_coerce_line(line) for line in lines]
    if len(result) != expected_count:
        raise TranslationError(
            ErrorKind.LINE_COUNT_MISMATCH,
            f"Line count mismatch: expected {expected_count}, got {len(result)}",
            lines=result,
        )

    for line, coerced in zip(lines, result):
        if coerced is None:
            raise TranslationError(
                ErrorKind.MISSING_LINES_FIELD,
                f"Model response has a non-string line: {line!r}",
            )
    return result


def parse_guess_response(response: str) -> dict[str, str]:
    """Parse the movie-guess reply into ``{"title": ..., "year": ...}``."""
    try:
        parsed = _decode_json(response)
    except (json.JSONDecodeError, TypeError) as e:
        raise TranslationError(ErrorKind.NON_JSON_RESPONSE, "Model returned non-JSON output") from e
    if not isinstance(parsed, dict) or not parsed.get("title"):
        raise TranslationError(ErrorKind.MISSING_LINES_FIELD, "Model response missing title")
    guess = {"title": str(parsed["title"]).strip()}
    if parsed.get("year"):
        guess["year"] = str(parsed["year"]).strip()
    return guess
