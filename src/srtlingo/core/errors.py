"""Error taxonomy for srtlingo.

Translation failures carry an ``ErrorKind`` so the repair strategy and the
orchestrator can decide locally what is recoverable. Service-level errors
(metadata, storage, access) carry the HTTP status the web layer answers with.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_CREDENTIALS = "MissingCredentials"
    INVALID_REQUEST = "InvalidRequest"
    NON_JSON_RESPONSE = "UpstreamNonJson"
    MISSING_LINES_FIELD = "UpstreamMissingField"
    LINE_COUNT_MISMATCH = "UpstreamLineCountMismatch"
    UPSTREAM_TRANSIENT = "UpstreamTransient"
    UPSTREAM_TERMINAL = "UpstreamTerminal"
    MODEL_NOT_FOUND = "ModelNotFound"
    NOT_FOUND_FALLBACK_EXHAUSTED = "NotFoundFallbackExhausted"


class SrtlingoError(Exception):
    """Base exception for all srtlingo errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert the error to a JSON-serializable dict."""
        return {"error_type": self.__class__.__name__, "message": self.message}


class TranslationError(SrtlingoError):
    """A window could not be translated.

    Attributes:
        kind: Classification used by the repair strategy and the orchestrator.
        lines: Lines the provider did return, for ``LINE_COUNT_MISMATCH``;
            ``None`` marks an entry that was not a string.
        model: Model identifier the failure came from, if known.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        lines: list[str | None] | None = None,
        model: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.lines = lines
        self.model = model

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.UPSTREAM_TRANSIENT

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["kind"] = self.kind.value
        if self.model:
            data["model"] = self.model
        return data

    def __repr__(self) -> str:
        return f"TranslationError({self.kind.value}, {self.message!r})"


class ConfigError(SrtlingoError):
    """Required configuration is absent or invalid."""

    def __init__(self, missing: list[str], message: str | None = None):
        self.missing = missing
        super().__init__(message or f"Missing configuration: {', '.join(missing)}")


class ServiceError(SrtlingoError):
    """An external collaborator (metadata, storage) failed."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status


class AccessDenied(ServiceError):
    """Bearer credential missing, invalid, or not on the allow-list."""
