"""Tests for configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from pydantic import ValidationError

from chatbot.config.settings import Settings, get_settings
from chatbot.config.llm_providers import get_llm


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test default setting values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.openai_model == "gpt-4o-mini"
            assert settings.langchain_project == "handbook-chatbot"
            assert settings.llm_temperature == 0.0
            assert settings.max_context_chars == 30000
            assert settings.context_lines == 3
            assert settings.history_turns == 6
            assert settings.llm_timeout_seconds == 60.0
            assert settings.rate_limit_retry_after == 60
            assert settings.snapshot_dir == "binran_all_text"
            assert settings.cors_origins == ["http://localhost:3000"]
            assert settings.port == 8080

    def test_environment_overrides(self):
        """Test values read from environment variables."""
        env = {
            "MAX_CONTEXT_CHARS": "1000",
            "CONTEXT_LINES": "0",
            "SNAPSHOT_DIR": "/srv/snapshots",
            "CORS_ORIGINS": '["https://a.example", "https://b.example"]',
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
            assert settings.max_context_chars == 1000
            assert settings.context_lines == 0
            assert settings.snapshot_dir == "/srv/snapshots"
            assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_rejects_non_positive_budget(self):
        """Test that a zero character budget is a configuration error."""
        with patch.dict(os.environ, {"MAX_CONTEXT_CHARS": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_handbook_paths(self):
        """Test optional handbook path helpers."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.handbooks_config_path() is None
            assert settings.handbook_base_path() is None

        env = {"HANDBOOKS_CONFIG": "/etc/handbooks.json", "HANDBOOK_BASE_DIR": "/data"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
            assert settings.handbooks_config_path() == Path("/etc/handbooks.json")
            assert settings.handbook_base_path() == Path("/data")

    def test_openai_configured(self):
        """Test OpenAI configuration detection."""
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.openai_api_key == "sk-test"
            assert settings.is_llm_configured()
            assert not settings.is_azure_configured()

    def test_azure_configured(self):
        """Test Azure configuration detection."""
        env = {
            "AZURE_OPENAI_ENDPOINT": "https://test.openai.azure.com",
            "AZURE_OPENAI_API_KEY": "azure-key",
            "AZURE_OPENAI_DEPLOYMENT_NAME": "gpt-4o",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
            assert settings.is_azure_configured()
            assert settings.is_llm_configured()

    def test_langsmith_configured(self):
        """Test LangSmith configuration detection."""
        with patch.dict(os.environ, {"LANGCHAIN_API_KEY": "ls-test"}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.is_langsmith_configured()


class TestLLMProviders:
    """Tests for LLM provider functions."""

    def test_get_llm_uses_cached_settings(self):
        """Test that get_llm falls back to environment settings."""
        with patch.dict(os.environ, {}, clear=True):
            get_settings.cache_clear()
            try:
                with pytest.raises(ValueError, match="No LLM provider configured"):
                    get_llm()
            finally:
                get_settings.cache_clear()

    def test_get_llm_raises_without_config(self):
        """Test error when no LLM configured."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
            with pytest.raises(ValueError, match="No LLM provider configured"):
                get_llm(settings)

    def test_get_llm_openai(self):
        """Test OpenAI chat model construction."""
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
            settings = Settings(_env_file=None)
            llm = get_llm(settings)
            assert isinstance(llm, ChatOpenAI)
            assert llm.model_name == "gpt-4o-mini"
            assert llm.max_retries == settings.llm_max_retries

    def test_get_llm_model_override(self):
        """Test overriding the configured model."""
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
            llm = get_llm(Settings(_env_file=None), model_override="gpt-4o")
            assert llm.model_name == "gpt-4o"

    def test_get_llm_prefers_azure(self):
        """Test that complete Azure settings take priority over OpenAI."""
        env = {
            "OPENAI_API_KEY": "sk-test",
            "AZURE_OPENAI_ENDPOINT": "https://test.openai.azure.com",
            "AZURE_OPENAI_API_KEY": "azure-key",
            "AZURE_OPENAI_DEPLOYMENT_NAME": "gpt-4o",
        }
        with patch.dict(os.environ, env, clear=True):
            llm = get_llm(Settings(_env_file=None))
            assert isinstance(llm, AzureChatOpenAI)
