"""
Application settings with environment variable support.

Configuration is loaded from environment variables with optional .env file.
Azure OpenAI settings override OpenAI when fully configured.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # OpenAI settings (default provider)
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")

    # Azure OpenAI settings (overrides OpenAI if all are set)
    azure_openai_endpoint: Optional[str] = Field(
        default=None, alias="AZURE_OPENAI_ENDPOINT"
    )
    azure_openai_api_key: Optional[str] = Field(
        default=None, alias="AZURE_OPENAI_API_KEY"
    )
    azure_openai_deployment_name: Optional[str] = Field(
        default=None, alias="AZURE_OPENAI_DEPLOYMENT_NAME"
    )
    azure_openai_api_version: str = Field(
        default="2024-02-15-preview", alias="AZURE_OPENAI_API_VERSION"
    )

    # LangSmith settings
    langchain_api_key: Optional[str] = Field(default=None, alias="LANGCHAIN_API_KEY")
    langchain_project: str = Field(default="handbook-chatbot", alias="LANGCHAIN_PROJECT")
    langchain_tracing_v2: bool = Field(default=True, alias="LANGCHAIN_TRACING_V2")

    # Handbook settings
    handbooks_config: Optional[str] = Field(default=None, alias="HANDBOOKS_CONFIG")
    handbook_base_dir: Optional[str] = Field(default=None, alias="HANDBOOK_BASE_DIR")
    snapshot_dir: str = Field(default="binran_all_text", alias="SNAPSHOT_DIR")
    university_name: str = Field(default="神戸大学", alias="UNIVERSITY_NAME")

    # Context extraction settings
    max_context_chars: int = Field(default=30000, ge=1, alias="MAX_CONTEXT_CHARS")
    context_lines: int = Field(default=3, ge=0, alias="CONTEXT_LINES")
    history_turns: int = Field(default=6, ge=0, alias="HISTORY_TURNS")

    # LLM behavior settings
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=4096, ge=1)
    llm_max_retries: int = Field(default=1, ge=0, alias="LLM_MAX_RETRIES")
    llm_timeout_seconds: float = Field(default=60.0, gt=0, alias="LLM_TIMEOUT_SECONDS")
    rate_limit_retry_after: int = Field(default=60, ge=1, alias="RATE_LIMIT_RETRY_AFTER")

    # HTTP server settings
    port: int = Field(default=8080, alias="PORT")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"], alias="CORS_ORIGINS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def is_azure_configured(self) -> bool:
        """Check if Azure OpenAI is fully configured."""
        return all([
            self.azure_openai_endpoint,
            self.azure_openai_api_key,
            self.azure_openai_deployment_name,
        ])

    def is_llm_configured(self) -> bool:
        """Check if any LLM provider is configured."""
        return bool(self.openai_api_key) or self.is_azure_configured()

    def is_langsmith_configured(self) -> bool:
        """Check if LangSmith is configured."""
        return self.langchain_api_key is not None

    def handbooks_config_path(self) -> Optional[Path]:
        return Path(self.handbooks_config) if self.handbooks_config else None

    def handbook_base_path(self) -> Optional[Path]:
        return Path(self.handbook_base_dir) if self.handbook_base_dir else None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
