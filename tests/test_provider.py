"""Tests for providers, candidate fallback and primary/secondary failover."""

import json
from unittest.mock import patch

import pytest

from srtlingo.core.config import AppConfig, LLMConfig
from srtlingo.core.errors import ConfigError, ErrorKind, TranslationError
from srtlingo.core.models import ModelPreference
from srtlingo.llm.provider import FailoverTranslator, LLMProvider, build_translator
from srtlingo.llm.translator import resolve_window


def _echo(messages, prefix="T"):
    lines = json.loads(messages[-1]["content"])["lines"]
    return json.dumps({"lines": [f"{prefix}:{line}" for line in lines]})


def fake_complete(behaviour: dict):
    """Per-model behaviour: "ok", an ErrorKind to raise, or a raw reply string."""
    calls = []

    def complete(messages, model, config, sleep=None, **kwargs):
        calls.append(model)
        action = behaviour.get(model, "ok")
        if action == "ok":
            return _echo(messages, prefix=model)
        if isinstance(action, ErrorKind):
            raise TranslationError(action, f"{action.value} from {model}", model=model)
        return action

    return complete, calls


CONFIG = LLMConfig()


def test_provider_returns_lines_and_model():
    complete, _ = fake_complete({})
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        lines, model = LLMProvider("primary", ["gpt-4.1"], CONFIG).translate(["a"], "Polish")
    assert lines == ["gpt-4.1:a"]
    assert model == "gpt-4.1"


def test_provider_requests_json_object():
    complete, _ = fake_complete({})
    with patch("srtlingo.llm.provider.complete", side_effect=complete) as mock:
        LLMProvider("primary", ["gpt-4.1"], CONFIG).translate(["a"], "Polish")
    assert mock.call_args.kwargs["response_format"] == {"type": "json_object"}


def test_candidates_skip_not_found():
    complete, calls = fake_complete({"gemini/a": ErrorKind.MODEL_NOT_FOUND})
    provider = LLMProvider("secondary", ["gemini/a", "gemini/b", "gemini/c"], CONFIG)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        lines, model = provider.translate(["x"], "Urdu")
    assert model == "gemini/b"
    assert calls == ["gemini/a", "gemini/b"]


def test_candidates_stop_on_other_error():
    complete, calls = fake_complete(
        {"gemini/a": ErrorKind.UPSTREAM_TERMINAL, "gemini/b": "ok"}
    )
    provider = LLMProvider("secondary", ["gemini/a", "gemini/b"], CONFIG)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            provider.translate(["x"], "Urdu")
    assert exc.value.kind is ErrorKind.UPSTREAM_TERMINAL
    assert calls == ["gemini/a"]


def test_candidates_stop_on_malformed_reply():
    complete, calls = fake_complete({"gemini/a": "not json"})
    provider = LLMProvider("secondary", ["gemini/a", "gemini/b"], CONFIG)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            provider.translate(["x"], "Urdu")
    assert exc.value.kind is ErrorKind.NON_JSON_RESPONSE
    assert exc.value.model == "gemini/a"
    assert calls == ["gemini/a"]


def test_all_candidates_not_found():
    complete, _ = fake_complete(
        {"gemini/a": ErrorKind.MODEL_NOT_FOUND, "gemini/b": ErrorKind.MODEL_NOT_FOUND}
    )
    provider = LLMProvider("secondary", ["gemini/a", "gemini/b"], CONFIG)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            provider.translate(["x"], "Urdu")
    assert exc.value.kind is ErrorKind.NOT_FOUND_FALLBACK_EXHAUSTED


def test_provider_needs_models():
    with pytest.raises(ValueError):
        LLMProvider("empty", [], CONFIG)


def _translator(preference, secondary=("gemini/a", "gemini/b")):
    config = AppConfig(llm={"model": "gpt-4.1", "secondary_models": list(secondary)})
    return build_translator(config, preference)


def test_auto_fails_over_to_second_secondary_candidate():
    complete, calls = fake_complete(
        {"gpt-4.1": ErrorKind.UPSTREAM_TERMINAL, "gemini/a": ErrorKind.MODEL_NOT_FOUND}
    )
    translator = _translator("auto")
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        result = translator(["Hello"], "Polish")
    assert result == ["gemini/b:Hello"]
    assert translator.last_model == "gemini/b"
    assert calls == ["gpt-4.1", "gemini/a", "gemini/b"]


def test_auto_uses_primary_when_it_works():
    complete, calls = fake_complete({})
    translator = _translator("auto")
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        translator(["Hello"], "Polish")
    assert translator.last_model == "gpt-4.1"
    assert calls == ["gpt-4.1"]


def test_auto_without_secondary_reraises_primary_error():
    complete, _ = fake_complete({"gpt-4.1": ErrorKind.UPSTREAM_TRANSIENT})
    translator = _translator("auto", secondary=())
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            translator(["Hello"], "Polish")
    assert exc.value.kind is ErrorKind.UPSTREAM_TRANSIENT


def test_primary_preference_never_falls_back():
    complete, calls = fake_complete({"gpt-4.1": ErrorKind.UPSTREAM_TERMINAL})
    translator = _translator(ModelPreference.PRIMARY)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError):
            translator(["Hello"], "Polish")
    assert calls == ["gpt-4.1"]


def test_secondary_preference_skips_primary():
    complete, calls = fake_complete({})
    translator = _translator("secondary")
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        translator(["Hello"], "Polish")
    assert calls == ["gemini/a"]


def test_secondary_preference_requires_secondary():
    with pytest.raises(ConfigError):
        _translator("secondary", secondary=())


def test_failover_translator_accepts_plain_strings():
    primary = LLMProvider("primary", ["gpt-4.1"], CONFIG)
    assert FailoverTranslator(primary, preference="primary").preference is ModelPreference.PRIMARY


def _drop_last_line(messages, model):
    lines = json.loads(messages[-1]["content"])["lines"]
    if len(lines) > 1:
        lines = lines[:-1]
    return json.dumps({"lines": [f"{model}:{line}" for line in lines]})


def test_auto_keeps_primary_mismatch_when_secondary_fails():
    def complete(messages, model, config, sleep=None, **kwargs):
        if model == "gpt-4.1":
            return _drop_last_line(messages, model)
        raise TranslationError(ErrorKind.MODEL_NOT_FOUND, "not found", model=model)

    translator = _translator("auto", secondary=("gemini/gone",))
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            translator(["a", "b"], "Polish")
    assert exc.value.kind is ErrorKind.LINE_COUNT_MISMATCH
    assert exc.value.lines == ["gpt-4.1:a"]
    assert isinstance(exc.value.__cause__, TranslationError)


def test_auto_mismatch_is_bisected_when_secondary_unavailable():
    def complete(messages, model, config, sleep=None, **kwargs):
        if model == "gpt-4.1":
            return _drop_last_line(messages, model)
        raise TranslationError(ErrorKind.MODEL_NOT_FOUND, "not found", model=model)

    translator = _translator("auto", secondary=("gemini/gone",))
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        result = resolve_window(
            ["a", "b", "c", "d"], lambda chunk: translator(chunk, "Polish")
        )
    assert result == ["gpt-4.1:a", "gpt-4.1:b", "gpt-4.1:c", "gpt-4.1:d"]


def test_auto_secondary_mismatch_wins_over_primary_mismatch():
    def complete(messages, model, config, sleep=None, **kwargs):
        return _drop_last_line(messages, model)

    translator = _translator("auto", secondary=("gemini/a",))
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        with pytest.raises(TranslationError) as exc:
            translator(["a", "b"], "Polish")
    assert exc.value.kind is ErrorKind.LINE_COUNT_MISMATCH
    assert exc.value.model == "gemini/a"


def test_null_entry_in_short_reply_is_repaired():
    def complete(messages, model, config, sleep=None, **kwargs):
        lines = json.loads(messages[-1]["content"])["lines"]
        if len(lines) == 4:
            return json.dumps({"lines": [None, "B", "C"]})
        return json.dumps({"lines": [line.upper() for line in lines]})

    translator = _translator(ModelPreference.PRIMARY)
    with patch("srtlingo.llm.provider.complete", side_effect=complete):
        result = resolve_window(
            ["a", "b", "c", "d"], lambda chunk: translator(chunk, "Polish"), max_depth=0
        )
    assert result == ["a", "B", "C", "d"]
