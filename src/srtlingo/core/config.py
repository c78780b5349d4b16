"""Configuration system for srtlingo.

Layered config loading (lowest to highest priority):
1. Field defaults below
2. ~/.config/srtlingo/config.toml (user-level)
3. ./srtlingo.toml (project-level)
4. Environment variables (SRTLINGO_LLM__MODEL, SRTLINGO_TMDB__READ_TOKEN, etc.)
5. CLI flags

Provider API keys (OPENAI_API_KEY, GEMINI_API_KEY, ...) are not part of this
model; LiteLLM reads them from the environment. ``validate_translation``
checks them once at startup.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from srtlingo.core.errors import ConfigError

_USER_CONFIG = Path.home() / ".config" / "srtlingo" / "config.toml"
_PROJECT_CONFIG = Path("srtlingo.toml")


class LLMConfig(BaseModel):
    model: str = "gpt-4.1"
    # Ordered fallback candidates for the secondary provider
    secondary_models: list[str] = Field(default_factory=list)
    api_base: str | None = None
    temperature: float = 0.1
    max_tokens: int = 8192
    max_attempts: int = 3
    retry_base_delay: float = 1.0  # seconds, doubled on each attempt

    @property
    def has_secondary(self) -> bool:
        return bool(self.secondary_models)


class TranslationConfig(BaseModel):
    window_size: int = Field(default=60, ge=1)
    max_depth: int = Field(default=4, ge=0)
    pacing_delay: float = 0.06  # seconds between windows
    target_language: str = "English"


class TMDBConfig(BaseModel):
    api_key: str | None = None
    read_token: str | None = None
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "en-US"
    max_results: int = 5

    @property
    def configured(self) -> bool:
        return bool(self.api_key or self.read_token)


class StorageConfig(BaseModel):
    root: Path = Path("./srtlingo_storage")
    public_prefix: str = "/storage"


class AuthConfig(BaseModel):
    enabled: bool = False
    supabase_url: str | None = None
    service_key: str | None = None
    table: str = "allowed_emails"

    @property
    def configured(self) -> bool:
        return bool(self.supabase_url and self.service_key)


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8322


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SRTLINGO_",
        env_nested_delimiter="__",
    )

    llm: LLMConfig = LLMConfig()
    translation: TranslationConfig = TranslationConfig()
    tmdb: TMDBConfig = TMDBConfig()
    storage: StorageConfig = StorageConfig()
    auth: AuthConfig = AuthConfig()
    server: ServerConfig = ServerConfig()

    def require(self, *sections: str) -> None:
        """Raise ConfigError if a section needed by the caller is not configured.

        Args:
            *sections: Any of "tmdb", "auth".
        """
        missing: list[str] = []
        if "tmdb" in sections and not self.tmdb.configured:
            missing.append("tmdb.api_key or tmdb.read_token")
        if "auth" in sections and not self.auth.configured:
            if not self.auth.supabase_url:
                missing.append("auth.supabase_url")
            if not self.auth.service_key:
                missing.append("auth.service_key")
        if missing:
            raise ConfigError(missing)


def validate_translation(config: AppConfig) -> None:
    """Check that every configured model has its provider credentials.

    Raises:
        ConfigError: listing the missing environment variables.
    """
    from srtlingo.llm.client import check_model

    missing: list[str] = []
    for model in [config.llm.model, *config.llm.secondary_models]:
        for key in check_model(model):
            if key not in missing:
                missing.append(key)
    if missing:
        raise ConfigError(missing, f"Missing provider credentials: {', '.join(missing)}")


def _load_toml(path: Path) -> dict:
    """Load a TOML file if it exists, return empty dict otherwise."""
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(*paths: Path, **cli_overrides: object) -> AppConfig:
    """Load configuration from all layers and merge.

    Args:
        *paths: TOML files to load instead of the user and project files.
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. translation.window_size=30).
    """
    config_data: dict = {}
    for path in paths or (_USER_CONFIG, _PROJECT_CONFIG):
        config_data = _deep_merge(config_data, _load_toml(Path(path)))

    # SRTLINGO_* variables sit above the TOML layers, so only the fields
    # they actually set are merged in
    config_data = _deep_merge(config_data, AppConfig().model_dump(exclude_unset=True))

    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        target = config_data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value

    return AppConfig(**config_data)
