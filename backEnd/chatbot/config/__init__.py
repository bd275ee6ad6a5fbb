"""Configuration module for the handbook chatbot."""

from .settings import Settings, get_settings
from .llm_providers import get_llm

__all__ = [
    "Settings",
    "get_settings",
    "get_llm",
]
