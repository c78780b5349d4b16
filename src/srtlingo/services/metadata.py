"""Movie metadata lookup via TMDB, plus an LLM guess from a subtitle filename."""

from __future__ import annotations

import re
from pathlib import PurePath

import httpx

from srtlingo.core.config import LLMConfig, TMDBConfig
from srtlingo.core.errors import ConfigError, ServiceError, TranslationError
from srtlingo.core.models import MovieMatch
from srtlingo.llm.client import complete
from srtlingo.llm.prompts import GUESS_MOVIE_SYSTEM, GUESS_MOVIE_USER, parse_guess_response
from srtlingo.utils.console import console

_YEAR_TOKEN_RE = re.compile(r"\(\s*\d{4}\s*\)")


def strip_year(query: str) -> str:
    """Remove a parenthesized year, e.g. "Dangal (2016)" -> "Dangal"."""
    return _YEAR_TOKEN_RE.sub("", query, count=1).strip()


def guess_query_from_filename(filename: str) -> str:
    """Turn "Dangal.2016.1080p_x264.srt" into a rough search query."""
    stem = PurePath(filename).stem
    return re.sub(r"[_.]+", " ", stem).strip()


class TMDBClient:
    """Minimal TMDB movie search client."""

    def __init__(self, config: TMDBConfig, client: httpx.Client | None = None):
        if not config.configured:
            raise ConfigError(["tmdb.api_key or tmdb.read_token"], "TMDB credentials missing")
        self.config = config
        self.client = client or httpx.Client(timeout=15.0)

    def _search_once(self, query: str) -> list[dict]:
        params = {
            "query": query,
            "language": self.config.language,
            "include_adult": "false",
        }
        headers = {"accept": "application/json"}
        if self.config.read_token:
            headers["Authorization"] = f"Bearer {self.config.read_token}"
        else:
            params["api_key"] = self.config.api_key

        try:
            response = self.client.get(
                f"{self.config.base_url.rstrip('/')}/search/movie", params=params, headers=headers
            )
        except httpx.HTTPError as e:
            raise ServiceError(502, f"TMDB request failed: {e}") from e

        if response.is_error:
            console.print(f"[red]TMDB search failed:[/red] {response.status_code}")
            raise ServiceError(
                502, f"TMDB error: {response.status_code} {response.text[:500]}"
            )
        results = response.json().get("results")
        return results if isinstance(results, list) else []

    def search(self, query: str) -> list[MovieMatch]:
        """Search movies by free-text title, best match first.

        If nothing matches and the query carries a "(YYYY)" token, the
        search is retried once without it.
        """
        query = query.strip()
        if not query:
            raise ServiceError(400, "Query is required")

        results = self._search_once(query)
        if not results:
            without_year = strip_year(query)
            if without_year and without_year != query:
                console.print(f"[dim]No results for '{query}', retrying as '{without_year}'[/dim]")
                results = self._search_once(without_year)

        return [_to_match(r) for r in results[: self.config.max_results]]

    def close(self) -> None:
        self.client.close()


def _to_match(raw: dict) -> MovieMatch:
    return MovieMatch(
        id=raw.get("id", 0),
        title=raw.get("title") or raw.get("original_title") or "",
        original_title=raw.get("original_title") or "",
        overview=raw.get("overview") or "",
        release_date=raw.get("release_date") or "",
        poster_path=raw.get("poster_path"),
        vote_average=raw.get("vote_average"),
    )


def guess_movie(filename: str, config: LLMConfig) -> dict[str, str]:
    """Ask the LLM for the likely title and year behind a subtitle filename.

    Raises:
        ServiceError: 400 for an empty filename, 502 if the model fails.
    """
    if not filename.strip():
        raise ServiceError(400, "Filename is required")

    messages = [
        {"role": "system", "content": GUESS_MOVIE_SYSTEM},
        {"role": "user", "content": GUESS_MOVIE_USER.format(filename=filename)},
    ]
    try:
        response = complete(
            messages, config.model, config, response_format={"type": "json_object"}
        )
        return parse_guess_response(response)
    except TranslationError as e:
        raise ServiceError(502, e.message) from e


def guess_query(guess: dict[str, str]) -> str:
    """Format a guess as a search query, e.g. "Dangal (2016)"."""
    year = f" ({guess['year']})" if guess.get("year") else ""
    return f"{guess['title']}{year}".strip()
