"""JSON API behind the web player.

Handlers take the decoded request and return an ``ApiResult``; they know
nothing about the HTTP server, which keeps them testable on their own.
Every payload carries ``ok``. Whole-document translation answers with a
stream of NDJSON records instead of a single payload.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from dataclasses import asdict, dataclass
from typing import Callable, Iterator

from srtlingo.core.config import AppConfig
from srtlingo.core.errors import ConfigError, ErrorKind, ServiceError, TranslationError
from srtlingo.core.languages import TARGET_LANGUAGES
from srtlingo.core.models import ModelPreference, MovieContext, TranslationJob
from srtlingo.core.pipeline import iter_job
from srtlingo.llm.client import check_model
from srtlingo.llm.provider import FailoverTranslator, build_translator
from srtlingo.llm.translator import resolve_window
from srtlingo.services.access import AccessChecker
from srtlingo.services.metadata import TMDBClient, guess_movie
from srtlingo.services.storage import LocalObjectStore
from srtlingo.subtitles.converter import split_lines, srt_to_vtt
from srtlingo.utils.console import console

# Routes reachable without a bearer token when auth is enabled
PUBLIC_ROUTES = {"/api/auth/allowlist-check", "/api/languages"}


@dataclass
class ApiResult:
    status: int
    payload: dict | None = None
    stream: Iterator[dict] | None = None


def _error(status: int, message: str, **extra: object) -> ApiResult:
    return ApiResult(status, {"ok": False, "error": message, **extra})


def _parse_json(body: bytes) -> dict:
    try:
        data = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ServiceError(400, "Invalid JSON body") from e
    if not isinstance(data, dict):
        raise ServiceError(400, "Invalid JSON body")
    return data


def _movie_context(data: dict) -> MovieContext | None:
    title = data.get("movieTitle")
    if not isinstance(title, str) or not title.strip():
        return None
    year = data.get("movieYear")
    overview = data.get("movieOverview")
    return MovieContext(
        title=title.strip(),
        year=str(year) if year else None,
        overview=overview if isinstance(overview, str) and overview else None,
    )


def _preference(data: dict) -> ModelPreference:
    try:
        return ModelPreference(data.get("modelPreference") or "auto")
    except ValueError as e:
        raise ServiceError(400, f"Unknown modelPreference: {data.get('modelPreference')}") from e


class Api:
    """Route table and handlers for the web player."""

    def __init__(
        self,
        config: AppConfig,
        translator_factory: Callable[..., FailoverTranslator] = build_translator,
        tmdb: TMDBClient | None = None,
        store: LocalObjectStore | None = None,
        access: AccessChecker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.translator_factory = translator_factory
        self.tmdb = tmdb
        self.store = store or LocalObjectStore(
            config.storage.root, public_prefix=config.storage.public_prefix
        )
        self.access = access
        self.sleep = sleep

        self.get_routes: dict[str, Callable[[], ApiResult]] = {
            "/api/llm-status": self.llm_status,
            "/api/languages": self.languages,
        }
        self.post_routes: dict[str, Callable[[dict], ApiResult]] = {
            "/api/translate-batch": self.translate_batch,
            "/api/translate": self.translate,
            "/api/tmdb/search": self.tmdb_search,
            "/api/guess-movie": self.guess_movie,
            "/api/subtitles/upload": self.upload_subtitles,
            "/api/subtitles/list": self.list_subtitles,
            "/api/preview/vtt": self.preview_vtt,
        }

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: object) -> Api:
        """Build the API with every optional service the config enables."""
        if config.tmdb.configured and "tmdb" not in kwargs:
            kwargs["tmdb"] = TMDBClient(config.tmdb)
        if config.auth.configured and "access" not in kwargs:
            kwargs["access"] = AccessChecker(config.auth)
        return cls(config, **kwargs)

    def handle(
        self, method: str, path: str, body: bytes = b"", authorization: str | None = None
    ) -> ApiResult:
        """Dispatch a request; every failure becomes an error payload."""
        if path == "/api/auth/allowlist-check" and method == "GET":
            return self.allowlist_check(authorization)

        routes = self.get_routes if method == "GET" else self.post_routes
        handler = routes.get(path)
        if handler is None:
            return _error(404, f"No route for {method} {path}")

        try:
            if self.config.auth.enabled and path not in PUBLIC_ROUTES:
                self._authorize(authorization)
            if method == "GET":
                return handler()
            return handler(_parse_json(body))
        except ServiceError as e:
            return _error(e.status, e.message)
        except ConfigError as e:
            return _error(503, e.message)

    def _authorize(self, authorization: str | None) -> None:
        if self.access is None:
            raise ConfigError(["auth.supabase_url", "auth.service_key"], "Auth not configured")
        self.access.check(authorization)

    def allowlist_check(self, authorization: str | None) -> ApiResult:
        if self.access is None:
            return _error(500, "Supabase credentials missing")
        try:
            identity = self.access.check(authorization)
        except ServiceError as e:
            return _error(e.status, e.message)
        return ApiResult(200, {"ok": True, "email": identity.email})

    def llm_status(self) -> ApiResult:
        models = [self.config.llm.model, *self.config.llm.secondary_models]
        missing = sorted({key for model in models for key in check_model(model)})
        payload = {
            "ok": not missing,
            "model": self.config.llm.model,
            "secondaryModels": self.config.llm.secondary_models,
        }
        if missing:
            payload["error"] = f"Missing {', '.join(missing)}"
            return ApiResult(500, payload)
        return ApiResult(200, payload)

    def languages(self) -> ApiResult:
        return ApiResult(
            200,
            {
                "ok": True,
                "languages": [{"code": c, "label": label} for c, label in TARGET_LANGUAGES.items()],
                "default": self.config.translation.target_language,
            },
        )

    def translate_batch(self, data: dict) -> ApiResult:
        """Translate one window, repairing line-count mismatches."""
        lines = data.get("lines")
        if not isinstance(lines, list) or not lines:
            return _error(400, "No lines provided")
        if not all(isinstance(line, str) for line in lines):
            return _error(400, "lines must be strings")

        target = data.get("targetLanguage") or self.config.translation.target_language
        context = _movie_context(data)
        translator = self.translator_factory(self.config, _preference(data), sleep=self.sleep)

        try:
            translated = resolve_window(
                lines,
                lambda chunk: translator(chunk, target, context),
                max_depth=self.config.translation.max_depth,
            )
        except TranslationError as e:
            console.print(f"[red]translate-batch failed ({e.kind.value}):[/red] {e.message}")
            return _error(500, e.message, kind=e.kind.value)

        return ApiResult(
            200,
            {
                "ok": True,
                "lines": translated,
                "model": translator.last_model,
                "targetLanguage": target,
            },
        )

    def translate(self, data: dict) -> ApiResult:
        """Translate a whole document, streaming progress as NDJSON records."""
        if isinstance(data.get("text"), str):
            lines = split_lines(data["text"])
        elif isinstance(data.get("lines"), list):
            lines = tuple(data["lines"])
        else:
            lines = ()
        if not lines:
            return _error(400, "No lines provided", kind=ErrorKind.INVALID_REQUEST.value)
        if not all(isinstance(line, str) for line in lines):
            return _error(400, "lines must be strings", kind=ErrorKind.INVALID_REQUEST.value)

        window_size = data.get("windowSize")
        if window_size is None:
            window_size = self.config.translation.window_size
        if isinstance(window_size, bool) or not isinstance(window_size, int) or window_size < 1:
            return _error(400, "windowSize must be a positive integer")

        job = TranslationJob(
            lines=lines,
            target_language=data.get("targetLanguage") or self.config.translation.target_language,
            context=_movie_context(data),
            model_preference=_preference(data),
            window_size=window_size,
        )
        translator = self.translator_factory(self.config, job.model_preference, sleep=self.sleep)
        return ApiResult(200, stream=self._stream_job(job, translator))

    def _stream_job(self, job: TranslationJob, translator: FailoverTranslator) -> Iterator[dict]:
        events = iter_job(job, translator, self.config.translation, sleep=self.sleep)
        while True:
            try:
                event = next(events)
            except StopIteration as stop:
                result = stop.value
                break
            yield {"type": "progress", **event.to_dict()}

        record = {
            "type": "result",
            "ok": result.ok,
            "state": result.state,
            "lines": result.lines,
            "model": result.model,
            "targetLanguage": result.target_language,
            "windowsCompleted": result.windows_completed,
            "windowCount": result.window_count,
        }
        if result.error is not None:
            record["error"] = result.error.message
            record["kind"] = result.error.kind.value
        yield record

    def tmdb_search(self, data: dict) -> ApiResult:
        if self.tmdb is None:
            return _error(500, "TMDB credentials missing")
        query = data.get("query")
        if not isinstance(query, str) or not query.strip():
            return _error(400, "Query is required")

        matches = self.tmdb.search(query)
        results = [asdict(m) for m in matches]
        return ApiResult(
            200, {"ok": True, "results": results, "first": results[0] if results else None}
        )

    def guess_movie(self, data: dict) -> ApiResult:
        filename = data.get("filename")
        if not isinstance(filename, str) or not filename.strip():
            return _error(400, "Filename is required")
        return ApiResult(200, {"ok": True, "guess": guess_movie(filename, self.config.llm)})

    def upload_subtitles(self, data: dict) -> ApiResult:
        movie_id = str(data.get("movieId") or "")
        content = data.get("content")
        if not movie_id or not isinstance(content, str) or not content:
            return _error(400, "movieId and file are required")
        try:
            raw = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            return _error(400, "content must be base64-encoded")

        stored = self.store.upload(
            raw,
            movie_id=movie_id,
            language=data.get("language") or "en",
            filename=data.get("filename") or "subtitles.srt",
        )
        return ApiResult(200, {"ok": True, "url": stored.url, "path": stored.path})

    def list_subtitles(self, data: dict) -> ApiResult:
        movie_id = str(data.get("movieId") or "")
        if not movie_id:
            return _error(400, "movieId is required")
        stored = self.store.latest(movie_id, data.get("language") or "en")
        if stored is None:
            return ApiResult(200, {"ok": True, "url": None, "path": None})
        return ApiResult(200, {"ok": True, "url": stored.url, "path": stored.path})

    def preview_vtt(self, data: dict) -> ApiResult:
        text = data.get("text")
        if not isinstance(text, str):
            return _error(400, "text is required")
        return ApiResult(200, {"ok": True, "vtt": srt_to_vtt(text)})
