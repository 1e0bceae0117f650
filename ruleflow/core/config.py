"""Application configuration."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment."""

    # API
    app_name: str = "Ruleflow Runtime"
    debug: bool = False
    log_level: str = "INFO"

    # Runtime behavior
    validate_documents: bool = Field(
        True, validation_alias=AliasChoices("RULEFLOW_VALIDATE", "validate_documents")
    )
    log_traces: bool = Field(
        False, validation_alias=AliasChoices("RULEFLOW_TRACE", "log_traces")
    )

    # Limits
    max_rules: int = 1000
    max_condition_depth: int = 10
    rules_timeout_ms: int = 100

    # Transport
    http_timeout_seconds: float = 10.0

    # Paths
    documents_dir: str = "documents"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RULEFLOW_",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
