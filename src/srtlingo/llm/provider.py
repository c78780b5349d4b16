"""Translation providers and primary/secondary failover."""

from __future__ import annotations

import time
from typing import Callable

from srtlingo.core.config import AppConfig, LLMConfig
from srtlingo.core.errors import ConfigError, ErrorKind, TranslationError
from srtlingo.core.models import ModelPreference, MovieContext
from srtlingo.llm.client import complete
from srtlingo.llm.prompts import build_translation_messages, parse_lines_response
from srtlingo.utils.console import console


class LLMProvider:
    """A translation backend with an ordered list of candidate models.

    Candidates are tried in order. A model that does not exist is skipped;
    any other failure ends the lookup, since a later candidate would not
    fix a malformed reply or a rejected request.
    """

    def __init__(
        self,
        name: str,
        models: list[str],
        config: LLMConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not models:
            raise ValueError(f"Provider '{name}' needs at least one model")
        self.name = name
        self.models = list(models)
        self.config = config
        self.sleep = sleep

    def translate(
        self,
        lines: list[str],
        target_language: str,
        context: MovieContext | None = None,
    ) -> tuple[list[str], str]:
        """Translate one window.

        Returns:
            The translated lines and the model that produced them.

        Raises:
            TranslationError: from the first candidate that fails for a reason
                other than "model not found", or NOT_FOUND_FALLBACK_EXHAUSTED.
        """
        messages = build_translation_messages(lines, target_language, context)

        for model in self.models:
            try:
                response = complete(
                    messages,
                    model,
                    self.config,
                    sleep=self.sleep,
                    response_format={"type": "json_object"},
                )
            except TranslationError as e:
                if e.kind is ErrorKind.MODEL_NOT_FOUND:
                    console.print(
                        f"[yellow]{self.name}: model {model} not found, trying next[/yellow]"
                    )
                    continue
                raise

            try:
                return parse_lines_response(response, len(lines)), model
            except TranslationError as e:
                e.model = model
                raise

        raise TranslationError(
            ErrorKind.NOT_FOUND_FALLBACK_EXHAUSTED,
            f"{self.name}: none of the models were found ({', '.join(self.models)})",
        )


class FailoverTranslator:
    """Translate through the primary provider, falling back to the secondary.

    Instances are callable as ``translator(lines, target_language, context)``
    and remember the model behind the last successful window in
    ``last_model``.
    """

    def __init__(
        self,
        primary: LLMProvider,
        secondary: LLMProvider | None = None,
        preference: ModelPreference | str = ModelPreference.AUTO,
    ):
        self.primary = primary
        self.secondary = secondary
        self.preference = ModelPreference(preference)
        self.last_model: str | None = None

        if self.preference is ModelPreference.SECONDARY and secondary is None:
            raise ConfigError(["llm.secondary_models"], "No secondary models configured")

    def __call__(
        self,
        lines: list[str],
        target_language: str,
        context: MovieContext | None = None,
    ) -> list[str]:
        if self.preference is ModelPreference.SECONDARY:
            return self._run(self.secondary, lines, target_language, context)

        try:
            return self._run(self.primary, lines, target_language, context)
        except TranslationError as e:
            if self.preference is ModelPreference.PRIMARY or self.secondary is None:
                raise
            console.print(
                f"[yellow]{self.primary.name} failed ({e.kind.value}), "
                f"falling back to {self.secondary.name}[/yellow]"
            )
            try:
                return self._run(self.secondary, lines, target_language, context)
            except TranslationError as secondary_error:
                # Keep the mismatch so the window can still be split and repaired
                if (
                    e.kind is ErrorKind.LINE_COUNT_MISMATCH
                    and secondary_error.kind is not ErrorKind.LINE_COUNT_MISMATCH
                ):
                    raise e from secondary_error
                raise

    def _run(
        self,
        provider: LLMProvider,
        lines: list[str],
        target_language: str,
        context: MovieContext | None,
    ) -> list[str]:
        translated, model = provider.translate(lines, target_language, context)
        self.last_model = model
        return translated


def build_translator(
    config: AppConfig,
    preference: ModelPreference | str = ModelPreference.AUTO,
    sleep: Callable[[float], None] = time.sleep,
) -> FailoverTranslator:
    """Construct the providers described by ``config``."""
    primary = LLMProvider("primary", [config.llm.model], config.llm, sleep=sleep)
    secondary = None
    if config.llm.has_secondary:
        secondary = LLMProvider("secondary", config.llm.secondary_models, config.llm, sleep=sleep)
    return FailoverTranslator(primary, secondary, preference)
