"""Progress events for streaming translation progress to external consumers.

The orchestrator yields these from a generator; ``run_job`` forwards them to
an optional callback. Consumers (CLI progress bars, the web server's NDJSON
stream) subscribe without touching the translation logic.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable


@dataclass
class ProgressEvent:
    """Emitted after each window of a job is resolved.

    Attributes:
        processed_lines: Lines translated so far.
        total_lines: Lines in the document.
        window_index: 1-based index of the window just resolved.
        window_count: Number of windows in the job.
        message: Human-readable status message.
        model: Model that produced this window, when known.
    """

    processed_lines: int
    total_lines: int
    window_index: int
    window_count: int
    message: str
    model: str | None = None

    @property
    def progress(self) -> float:
        """Fraction of lines processed, 0.0 to 1.0."""
        if not self.total_lines:
            return 0.0
        return min(1.0, self.processed_lines / self.total_lines)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["progress"] = self.progress
        return data


EventCallback = Callable[[ProgressEvent], None]
