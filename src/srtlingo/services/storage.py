"""Path-addressed subtitle storage on the local filesystem.

Layout: <root>/movies/<movie_id>/<language>/<millis>-<base>-<language>.srt
The millisecond prefix makes the newest upload sort last by name.
"""

from __future__ import annotations

import re
import time
from pathlib import Path, PurePosixPath

from srtlingo.core.errors import ServiceError
from srtlingo.core.models import StoredObject


def _safe_component(value: str, fallback: str = "") -> str:
    """Reduce a path component to a filesystem-safe token."""
    value = re.sub(r"[^\w.-]+", "-", value.strip()).strip(".-")
    return value or fallback


def _created_at(path: Path) -> tuple[int, int]:
    match = re.match(r"(\d+)-", path.name)
    return (int(match.group(1)) if match else 0, path.stat().st_mtime_ns)


class LocalObjectStore:
    """Store uploaded subtitles under a root directory."""

    def __init__(self, root: Path, public_prefix: str = "/storage"):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def _prefix(self, movie_id: str, language: str) -> PurePosixPath:
        movie = _safe_component(str(movie_id))
        if not movie:
            raise ServiceError(400, "movieId is required")
        return PurePosixPath("movies", movie, _safe_component(language, "en"))

    def url_for(self, path: str) -> str:
        return f"{self.public_prefix}/{path}"

    def upload(
        self,
        content: bytes,
        movie_id: str,
        language: str,
        filename: str,
        now: float | None = None,
    ) -> StoredObject:
        """Store content and return its path and public URL. Existing paths are overwritten."""
        if not content:
            raise ServiceError(400, "movieId and file are required")
        prefix = self._prefix(movie_id, language)
        millis = int((now if now is not None else time.time()) * 1000)
        base = _safe_component(re.sub(r"\.[^.]+$", "", filename), "subtitles")
        name = f"{millis}-{base}-{prefix.name}.srt"

        rel_path = prefix / name
        dest = self.root / rel_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content)
        return StoredObject(path=str(rel_path), url=self.url_for(str(rel_path)), size=len(content))

    def latest(self, movie_id: str, language: str) -> StoredObject | None:
        """Return the most recently created object for a movie and language."""
        prefix = self._prefix(movie_id, language)
        directory = self.root / prefix
        if not directory.is_dir():
            return None
        files = [f for f in directory.iterdir() if f.is_file()]
        if not files:
            return None
        newest = max(files, key=_created_at)
        rel_path = prefix / newest.name
        return StoredObject(
            path=str(rel_path), url=self.url_for(str(rel_path)), size=newest.stat().st_size
        )

    def open(self, path: str) -> Path | None:
        """Resolve a stored path to a file under the root, or None."""
        root = self.root.resolve()
        candidate = (root / path.lstrip("/")).resolve()
        if not candidate.is_relative_to(root) or not candidate.is_file():
            return None
        return candidate
