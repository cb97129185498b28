"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from taxreturn.settings import DEFAULT_DB_PATH, DEFAULT_LLM_MODEL, Settings

ENV_VARS = (
    "TAXRETURN_CONFIDENCE_THRESHOLD",
    "TAXRETURN_PROVIDER_TIMEOUT",
    "TAXRETURN_USE_LLM",
    "TAXRETURN_LLM_MODEL",
    "TAXRETURN_DB",
    "TAXRETURN_MAX_WORKERS",
    "ANTHROPIC_API_KEY",
    "PROVIDER_TIMEOUT_SECONDS",
    "USE_LLM_FALLBACK",
    "DB_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    settings = Settings()
    assert settings.confidence_threshold == 0.7
    assert settings.provider_timeout_seconds == 30.0
    assert settings.use_llm_fallback is True
    assert settings.llm_model == DEFAULT_LLM_MODEL
    assert settings.anthropic_api_key is None
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.max_workers == 4


def test_reads_prefixed_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("TAXRETURN_CONFIDENCE_THRESHOLD", "0.85")
    monkeypatch.setenv("TAXRETURN_PROVIDER_TIMEOUT", "5")
    monkeypatch.setenv("TAXRETURN_LLM_MODEL", "claude-test")
    monkeypatch.setenv("TAXRETURN_DB", str(tmp_path / "t.db"))
    monkeypatch.setenv("TAXRETURN_MAX_WORKERS", "2")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")

    settings = Settings()

    assert settings.confidence_threshold == 0.85
    assert settings.provider_timeout_seconds == 5.0
    assert settings.llm_model == "claude-test"
    assert settings.db_path == Path(tmp_path / "t.db")
    assert settings.max_workers == 2
    assert settings.anthropic_api_key == "sk-test"


@pytest.mark.parametrize(
    "raw, expected",
    [("0", False), ("false", False), ("no", False), ("1", True), ("y", True), ("yes", True), ("on", True)],
)
def test_use_llm_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("TAXRETURN_USE_LLM", raw)
    assert Settings().use_llm_fallback is expected


def test_invalid_threshold_rejected(monkeypatch):
    monkeypatch.setenv("TAXRETURN_CONFIDENCE_THRESHOLD", "1.5")
    with pytest.raises(ValidationError):
        Settings()


def test_invalid_worker_count_rejected(monkeypatch):
    monkeypatch.setenv("TAXRETURN_MAX_WORKERS", "zero")
    with pytest.raises(ValidationError):
        Settings()


def test_keyword_arguments_override_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
    monkeypatch.setenv("TAXRETURN_USE_LLM", "1")
    settings = Settings(anthropic_api_key="explicit", use_llm_fallback=False)
    assert settings.anthropic_api_key == "explicit"
    assert settings.use_llm_fallback is False
