"""Shared data models for srtlingo."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from srtlingo.core.errors import TranslationError


class ModelPreference(str, Enum):
    """Which provider a translation job may use."""

    AUTO = "auto"
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Window:
    """A contiguous slice of a document, identified by its offset."""

    offset: int
    lines: tuple[str, ...]

    @property
    def length(self) -> int:
        return len(self.lines)

    @property
    def end(self) -> int:
        return self.offset + len(self.lines)


@dataclass(frozen=True)
class MovieContext:
    """Optional movie details sent along for terminology consistency."""

    title: str
    year: str | None = None
    overview: str | None = None

    @classmethod
    def from_match(cls, match: MovieMatch) -> MovieContext:
        year = match.release_date[:4] if match.release_date else None
        return cls(title=match.title, year=year or None, overview=match.overview or None)


@dataclass
class TranslationJob:
    """One translate action over a document snapshot."""

    lines: tuple[str, ...]
    target_language: str
    context: MovieContext | None = None
    model_preference: ModelPreference = ModelPreference.AUTO
    window_size: int = 60

    def __post_init__(self) -> None:
        self.lines = tuple(self.lines)
        self.model_preference = ModelPreference(self.model_preference)


@dataclass
class JobResult:
    """Outcome of a translation job.

    ``lines`` keeps whatever was accumulated before a failure so it can
    still be displayed; ``state`` tells whether it is complete.
    """

    state: str  # "done" or "failed"
    lines: list[str]
    target_language: str
    window_count: int = 0
    windows_completed: int = 0
    model: str | None = None
    error: TranslationError | None = None

    @property
    def ok(self) -> bool:
        return self.state == "done"

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class SubtitleCue:
    """A parsed subtitle cue, used for the preview track."""

    text: str
    start: float  # seconds
    end: float  # seconds
    index: int | None = None


@dataclass
class MovieMatch:
    """A candidate movie returned by the metadata lookup."""

    id: int
    title: str
    original_title: str = ""
    overview: str = ""
    release_date: str = ""
    poster_path: str | None = None
    vote_average: float | None = None

    @property
    def year(self) -> str | None:
        return self.release_date[:4] or None


@dataclass
class StoredObject:
    """A file held by the object store."""

    path: str
    url: str
    size: int = 0


@dataclass
class Identity:
    """The account behind a bearer credential."""

    user_id: str
    email: str | None = None
    metadata: dict = field(default_factory=dict)
