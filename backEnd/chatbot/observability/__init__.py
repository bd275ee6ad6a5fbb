"""Observability and tracing for the handbook chatbot."""

from .tracing import (
    configure_langsmith,
    HandbookTracer,
    span_metadata,
)

__all__ = [
    "configure_langsmith",
    "HandbookTracer",
    "span_metadata",
]
