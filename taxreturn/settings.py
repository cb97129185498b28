"""Runtime settings read from the environment."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path.home() / ".taxreturn" / "taxreturn.db"
DEFAULT_LLM_MODEL = "claude-sonnet-4-20250514"


class Settings(BaseSettings):
    """Extraction and storage settings, overridable by TAXRETURN_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="TAXRETURN_",
        extra="ignore",
    )

    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    provider_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias=AliasChoices("provider_timeout_seconds", "TAXRETURN_PROVIDER_TIMEOUT"),
    )
    use_llm_fallback: bool = Field(
        default=True,
        validation_alias=AliasChoices("use_llm_fallback", "TAXRETURN_USE_LLM"),
    )
    llm_model: str = DEFAULT_LLM_MODEL
    # Shared with the anthropic client, so no prefix
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("anthropic_api_key", "ANTHROPIC_API_KEY"),
    )
    db_path: Path = Field(
        default=DEFAULT_DB_PATH,
        validation_alias=AliasChoices("db_path", "TAXRETURN_DB"),
    )
    max_workers: int = Field(default=4, ge=1)
