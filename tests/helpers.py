"""Fake translators shared by the test modules."""

from __future__ import annotations

from srtlingo.core.errors import ErrorKind, TranslationError


def upper(lines: list[str]) -> list[str]:
    return [line.upper() for line in lines]


class FakeTranslator:
    """Callable like FailoverTranslator; records every window it sees."""

    def __init__(self, fn=upper, model: str = "fake-model"):
        self.fn = fn
        self.calls: list[list[str]] = []
        self.last_model: str | None = None
        self.model = model

    def __call__(self, lines, target_language, context=None):
        self.calls.append(list(lines))
        result = self.fn(list(lines))
        self.last_model = self.model
        return result


def mismatch(lines: list[str], returned: list[str]) -> TranslationError:
    return TranslationError(
        ErrorKind.LINE_COUNT_MISMATCH,
        f"Line count mismatch: expected {len(lines)}, got {len(returned)}",
        lines=returned,
    )
