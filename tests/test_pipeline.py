"""Tests for the batch orchestrator."""

import json
from unittest.mock import patch

import pytest

from helpers import FakeTranslator, mismatch, upper
from srtlingo.core.config import AppConfig, TranslationConfig
from srtlingo.core.errors import ErrorKind, TranslationError
from srtlingo.core.events import ProgressEvent
from srtlingo.core.models import ModelPreference, MovieContext, TranslationJob
from srtlingo.core.pipeline import iter_job, run_job
from srtlingo.llm.provider import build_translator


def _lines(n: int) -> list[str]:
    return [f"line {i}" for i in range(n)]


def _drain(gen):
    events = []
    while True:
        try:
            events.append(next(gen))
        except StopIteration as stop:
            return events, stop.value


def test_65_lines_two_windows(translation_config):
    translator = FakeTranslator()
    job = TranslationJob(lines=_lines(65), target_language="Polish", window_size=60)

    events, result = _drain(iter_job(job, translator, translation_config))

    assert len(events) == 2
    assert [len(c) for c in translator.calls] == [60, 5]
    assert result.ok
    assert result.state == "done"
    assert len(result.lines) == 65
    assert result.lines == upper(_lines(65))
    assert result.model == "fake-model"


def test_progress_event_fields(translation_config):
    job = TranslationJob(lines=_lines(65), target_language="Polish", window_size=60)
    events, _ = _drain(iter_job(job, FakeTranslator(), translation_config))

    first, last = events
    assert (first.processed_lines, first.total_lines) == (60, 65)
    assert (first.window_index, first.window_count) == (1, 2)
    assert last.processed_lines == 65
    assert last.progress == 1.0
    assert "chunk 2 of 2" in last.message


def test_run_job_pushes_events(translation_config):
    received: list[ProgressEvent] = []
    job = TranslationJob(lines=_lines(10), target_language="Hindi", window_size=3)

    result = run_job(job, FakeTranslator(), translation_config, on_event=received.append)

    assert result.ok
    assert [e.window_index for e in received] == [1, 2, 3, 4]


def test_pacing_between_windows_only():
    delays = []
    config = TranslationConfig(pacing_delay=0.06)
    job = TranslationJob(lines=_lines(7), target_language="Polish", window_size=3)

    run_job(job, FakeTranslator(), config, sleep=delays.append)

    assert delays == [0.06, 0.06]


def test_first_failure_stops_job(translation_config):
    def fn(lines):
        if lines[0] == "line 3":
            raise TranslationError(ErrorKind.UPSTREAM_TERMINAL, "rejected")
        return upper(lines)

    translator = FakeTranslator(fn)
    job = TranslationJob(lines=_lines(9), target_language="Polish", window_size=3)

    events, result = _drain(iter_job(job, translator, translation_config))

    assert not result.ok
    assert result.state == "failed"
    assert result.error.kind is ErrorKind.UPSTREAM_TERMINAL
    # Earlier output kept, no further windows attempted
    assert result.lines == upper(_lines(3))
    assert result.windows_completed == 1
    assert len(events) == 1
    assert len(translator.calls) == 2


def test_non_json_window_fails_without_bisection(translation_config):
    def fn(lines):
        raise TranslationError(ErrorKind.NON_JSON_RESPONSE, "Model returned non-JSON output")

    translator = FakeTranslator(fn)
    job = TranslationJob(lines=_lines(10), target_language="Polish", window_size=10)

    result = run_job(job, translator, translation_config)

    assert result.error.kind is ErrorKind.NON_JSON_RESPONSE
    assert len(translator.calls) == 1
    assert result.lines == []


def test_mismatch_is_repaired_inside_job(translation_config):
    def fn(lines):
        if len(lines) > 2:
            raise mismatch(lines, lines[:-1])
        return upper(lines)

    translator = FakeTranslator(fn)
    job = TranslationJob(lines=_lines(12), target_language="Polish", window_size=6)

    result = run_job(job, translator, translation_config)

    assert result.ok
    assert result.lines == upper(_lines(12))


def test_empty_document_rejected(translation_config):
    translator = FakeTranslator()
    result = run_job(
        TranslationJob(lines=[], target_language="Polish"), translator, translation_config
    )

    assert result.state == "failed"
    assert result.error.kind is ErrorKind.INVALID_REQUEST
    assert translator.calls == []


def test_context_reaches_translator(translation_config):
    seen = []

    class Recorder(FakeTranslator):
        def __call__(self, lines, target_language, context=None):
            seen.append((target_language, context))
            return super().__call__(lines, target_language, context)

    context = MovieContext(title="Dangal", year="2016")
    job = TranslationJob(lines=_lines(2), target_language="Urdu", context=context)
    run_job(job, Recorder(), translation_config)

    assert seen == [("Urdu", context)]


def test_rerun_is_a_fresh_pass(translation_config):
    translator = FakeTranslator()
    job = TranslationJob(lines=_lines(4), target_language="Polish", window_size=2)

    first = run_job(job, translator, translation_config)
    second = run_job(job, translator, translation_config)

    assert first.lines == second.lines
    assert len(translator.calls) == 4


@pytest.mark.parametrize("n,size", [(1, 60), (59, 60), (60, 60), (61, 30), (200, 7)])
def test_output_length_matches_input(translation_config, n, size):
    def fn(lines):
        raise mismatch(lines, lines[: len(lines) // 2])

    job = TranslationJob(lines=_lines(n), target_language="Polish", window_size=size)
    result = run_job(job, FakeTranslator(fn), translation_config)

    assert result.ok
    assert len(result.lines) == n


def test_auto_job_reports_fallback_model(translation_config):
    def complete(messages, model, config, sleep=None, **kwargs):
        if model == "gpt-4.1":
            raise TranslationError(ErrorKind.UPSTREAM_TERMINAL, "rejected", model=model)
        if model == "gemini/a":
            raise TranslationError(ErrorKind.MODEL_NOT_FOUND, "not found", model=model)
        lines = json.loads(messages[-1]["content"])["lines"]
        return json.dumps({"lines": upper(lines)})

    config = AppConfig(llm={"model": "gpt-4.1", "secondary_models": ["gemini/a", "gemini/b"]})
    translator = build_translator(config, ModelPreference.AUTO)
    job = TranslationJob(lines=_lines(5), target_language="Polish", window_size=3)

    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        result = run_job(job, translator, translation_config)

    assert result.ok
    assert result.model == "gemini/b"
    assert result.lines == upper(_lines(5))
