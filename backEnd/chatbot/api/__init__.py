"""HTTP API for the handbook chatbot."""

from .main import create_app

__all__ = ["create_app"]
