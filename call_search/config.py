"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Gong
    gong_access_key: str = ""
    gong_secret_key: str = ""
    gong_base_url: str = "https://api.gong.io/v2"

    # Salesforce (optional - CRM filters and context are skipped without it)
    salesforce_instance_url: str = ""
    salesforce_access_token: str = ""
    salesforce_api_version: str = "v59.0"

    # LLM
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-20250514"
    answer_max_tokens: int = 2000

    # Search limits
    upstream_timeout_seconds: float = 60.0
    max_transcript_calls: int = 15
    max_paginated_calls: int = 1000

    # Arize Observability
    arize_space_id: str = ""
    arize_api_key: str = ""
    arize_project_name: str = "gong-call-search"

    # App settings
    debug: bool = False

    @property
    def gong_configured(self) -> bool:
        return bool(self.gong_access_key and self.gong_secret_key)

    @property
    def salesforce_configured(self) -> bool:
        return bool(self.salesforce_instance_url and self.salesforce_access_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
