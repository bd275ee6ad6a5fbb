"""
LLM provider abstraction for OpenAI and Azure OpenAI.

Configured via environment variables:
- Default: OpenAI (OPENAI_API_KEY, OPENAI_MODEL)
- Azure: Set AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY and
  AZURE_OPENAI_DEPLOYMENT_NAME

Azure settings override OpenAI when fully configured.

Client-side retries are kept low: rate-limit errors are reported
back to the user with a retry hint instead of being retried here.
"""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from .settings import Settings, get_settings


def get_llm(
    settings: Optional[Settings] = None,
    model_override: Optional[str] = None,
) -> BaseChatModel:
    """
    Get LLM instance based on configuration.

    Priority:
    1. Azure OpenAI if AZURE_OPENAI_* env vars are all set
    2. OpenAI (default)

    Args:
        settings: Settings to use (cached settings if None)
        model_override: Override the configured model name

    Returns:
        Configured LLM instance

    Raises:
        ValueError: If no LLM provider is configured
    """
    settings = settings or get_settings()

    if settings.is_azure_configured():
        return AzureChatOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            deployment_name=model_override or settings.azure_openai_deployment_name,
            api_version=settings.azure_openai_api_version,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            max_retries=settings.llm_max_retries,
            timeout=settings.llm_timeout_seconds,
        )

    if not settings.openai_api_key:
        raise ValueError(
            "No LLM provider configured. Set OPENAI_API_KEY or "
            "AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY + AZURE_OPENAI_DEPLOYMENT_NAME"
        )

    return ChatOpenAI(
        api_key=settings.openai_api_key,
        model=model_override or settings.openai_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        max_retries=settings.llm_max_retries,
        timeout=settings.llm_timeout_seconds,
    )
