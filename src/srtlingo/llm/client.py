"""Unified LLM client via LiteLLM with retry on transient upstream errors."""

from __future__ import annotations

import time
from typing import Callable

import litellm

from srtlingo.core.config import LLMConfig
from srtlingo.core.errors import ErrorKind, TranslationError
from srtlingo.utils.console import console

# Rate-limit / service-unavailable class: worth waiting for
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.APIConnectionError,
    litellm.Timeout,
)

# Keep LiteLLM from printing its own debug banners to stdout
litellm.suppress_debug_info = True


def complete(
    messages: list[dict[str, str]],
    model: str,
    config: LLMConfig,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: object,
) -> str:
    """Send a chat completion request via LiteLLM.

    Transient failures are retried with exponential backoff
    (``retry_base_delay * 2**attempt``) for at most ``config.max_attempts``
    attempts.

    Args:
        messages: Chat messages in OpenAI format.
        model: LiteLLM model identifier (e.g. "gpt-4.1", "gemini/gemini-2.5-flash").
        config: LLM configuration.
        sleep: Delay function, replaceable in tests.
        **kwargs: Additional kwargs passed to litellm.completion.

    Returns:
        The assistant's response text.

    Raises:
        TranslationError: UPSTREAM_TRANSIENT once retries are exhausted,
            MODEL_NOT_FOUND for an unknown model, UPSTREAM_TERMINAL otherwise.
    """
    attempts = max(1, config.max_attempts)
    attempt = 0
    while True:
        try:
            response = litellm.completion(
                model=model,
                messages=messages,
                api_base=config.api_base,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                **kwargs,
            )
        except TRANSIENT_ERRORS as e:
            attempt += 1
            if attempt >= attempts:
                raise TranslationError(
                    ErrorKind.UPSTREAM_TRANSIENT,
                    f"{model} unavailable after {attempts} attempts: {e}",
                    model=model,
                ) from e
            delay = config.retry_base_delay * 2 ** (attempt - 1)
            console.print(
                f"[yellow]{type(e).__name__} from {model}, "
                f"retrying in {delay:.1f}s ({attempt}/{attempts})...[/yellow]"
            )
            sleep(delay)
            continue
        except litellm.NotFoundError as e:
            raise TranslationError(
                ErrorKind.MODEL_NOT_FOUND, f"Model not found: {model}", model=model
            ) from e
        except Exception as e:
            raise TranslationError(
                ErrorKind.UPSTREAM_TERMINAL, f"{type(e).__name__}: {e}", model=model
            ) from e

        content = response.choices[0].message.content
        if not content:
            raise TranslationError(
                ErrorKind.NON_JSON_RESPONSE, "Model returned an empty reply", model=model
            )
        return content


def check_model(model: str) -> list[str]:
    """Return the environment variables LiteLLM still needs for ``model``."""
    try:
        result = litellm.validate_environment(model=model)
    except Exception:
        # Unknown provider prefix: LiteLLM cannot tell which keys it needs
        return []
    if result.get("keys_in_environment"):
        return []
    return list(result.get("missing_keys", []))
