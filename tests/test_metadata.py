"""Tests for TMDB search and filename guessing, against a mocked transport."""

from unittest.mock import patch

import httpx
import pytest

from srtlingo.core.config import LLMConfig, TMDBConfig
from srtlingo.core.errors import ConfigError, ErrorKind, ServiceError, TranslationError
from srtlingo.services.metadata import (
    TMDBClient,
    guess_movie,
    guess_query,
    guess_query_from_filename,
    strip_year,
)

DANGAL = {
    "id": 360814,
    "title": "Dangal",
    "original_title": "दंगल",
    "overview": "A former wrestler trains his daughters.",
    "release_date": "2016-12-21",
    "poster_path": "/poster.jpg",
    "vote_average": 8.0,
}


def _client(handler, **config) -> TMDBClient:
    config.setdefault("read_token", "token")
    transport = httpx.MockTransport(handler)
    return TMDBClient(TMDBConfig(**config), client=httpx.Client(transport=transport))


def test_search_returns_matches():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"results": [DANGAL]})

    matches = _client(handler).search("Dangal")

    assert matches[0].title == "Dangal"
    assert matches[0].year == "2016"
    assert requests[0].headers["Authorization"] == "Bearer token"
    assert requests[0].url.params["query"] == "Dangal"
    assert requests[0].url.params["include_adult"] == "false"


def test_api_key_sent_as_query_param():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"results": []})

    _client(handler, read_token=None, api_key="k").search("Dangal")
    assert requests[0].url.params["api_key"] == "k"
    assert "Authorization" not in requests[0].headers


def test_year_fallback():
    queries = []

    def handler(request):
        query = request.url.params["query"]
        queries.append(query)
        return httpx.Response(200, json={"results": [DANGAL] if query == "Dangal" else []})

    matches = _client(handler).search("Dangal (2016)")

    assert queries == ["Dangal (2016)", "Dangal"]
    assert matches[0].id == 360814


def test_no_year_no_retry():
    queries = []

    def handler(request):
        queries.append(request.url.params["query"])
        return httpx.Response(200, json={"results": []})

    assert _client(handler).search("Nothing Here") == []
    assert queries == ["Nothing Here"]


def test_results_capped():
    def handler(request):
        return httpx.Response(200, json={"results": [dict(DANGAL, id=i) for i in range(9)]})

    assert len(_client(handler).search("Dangal")) == 5


def test_upstream_error_is_502():
    def handler(request):
        return httpx.Response(401, json={"status_message": "Invalid API key"})

    with pytest.raises(ServiceError) as exc:
        _client(handler).search("Dangal")
    assert exc.value.status == 502


def test_empty_query_rejected():
    with pytest.raises(ServiceError) as exc:
        _client(lambda r: httpx.Response(200, json={})).search("  ")
    assert exc.value.status == 400


def test_unconfigured_client():
    with pytest.raises(ConfigError):
        TMDBClient(TMDBConfig())


def test_strip_year():
    assert strip_year("Dangal ( 2016 )") == "Dangal"
    assert strip_year("Dangal") == "Dangal"


def test_guess_query_from_filename():
    assert guess_query_from_filename("Dangal.2016_1080p.srt") == "Dangal 2016 1080p"


@patch("srtlingo.services.metadata.complete", return_value='{"title": "Dangal", "year": "2016"}')
def test_guess_movie(_mock):
    guess = guess_movie("Dangal.2016.srt", LLMConfig())
    assert guess == {"title": "Dangal", "year": "2016"}
    assert guess_query(guess) == "Dangal (2016)"


@patch(
    "srtlingo.services.metadata.complete",
    side_effect=TranslationError(ErrorKind.UPSTREAM_TERMINAL, "rejected"),
)
def test_guess_movie_failure(_mock):
    with pytest.raises(ServiceError) as exc:
        guess_movie("x.srt", LLMConfig())
    assert exc.value.status == 502
