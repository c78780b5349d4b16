"""Shared test fixtures."""

from pathlib import Path

import pytest

from srtlingo.core.config import AppConfig, LLMConfig, TranslationConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_srt(fixtures_dir: Path) -> Path:
    return fixtures_dir / "sample.srt"


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(model="gpt-4.1", retry_base_delay=0.0)


@pytest.fixture
def translation_config() -> TranslationConfig:
    return TranslationConfig(pacing_delay=0.0)


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        llm={"model": "gpt-4.1", "secondary_models": ["gemini/a", "gemini/b"]},
        translation={"pacing_delay": 0.0},
        storage={"root": tmp_path / "storage"},
    )
