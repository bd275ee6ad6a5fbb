"""
LangSmith integration for observability and tracing.

Provides:
- Trace configuration from settings
- Tracer with spans around each handbook answer
"""

import os
from contextlib import contextmanager
from typing import Any, Optional

from langsmith import Client
from langsmith.run_trees import RunTree

from ..config.settings import Settings, get_settings


def configure_langsmith(settings: Optional[Settings] = None) -> Optional[Client]:
    """
    Configure LangSmith from settings.

    Required env vars:
    - LANGCHAIN_API_KEY: LangSmith API key
    - LANGCHAIN_PROJECT: Project name (default: "handbook-chatbot")
    - LANGCHAIN_TRACING_V2: Enable tracing (default: true)

    Returns:
        LangSmith client if configured, None otherwise
    """
    settings = settings or get_settings()

    if not settings.is_langsmith_configured():
        return None

    # Set environment variables for LangChain
    os.environ["LANGCHAIN_TRACING_V2"] = str(settings.langchain_tracing_v2).lower()
    os.environ["LANGCHAIN_PROJECT"] = settings.langchain_project
    os.environ["LANGCHAIN_API_KEY"] = settings.langchain_api_key

    return Client()


class HandbookTracer:
    """
    Tracer for handbook question answering.

    Spans are no-ops unless LangSmith is configured.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._client: Optional[Client] = None
        self._project: str = self._settings.langchain_project

    @property
    def client(self) -> Optional[Client]:
        """Lazy-load LangSmith client."""
        if self._client is None:
            self._client = configure_langsmith(self._settings)
        return self._client

    @property
    def is_enabled(self) -> bool:
        """Check if tracing is enabled."""
        return self.client is not None

    @contextmanager
    def span(self, name: str, run_type: str = "chain", **metadata):
        """
        Create a trace span with metadata.

        Args:
            name: Span name
            run_type: LangSmith run type (chain, tool, llm, etc.)
            **metadata: Additional metadata to attach

        Yields:
            RunTree object for the span, or None when tracing is disabled
        """
        if not self.is_enabled:
            yield None
            return

        run = RunTree(
            name=name,
            run_type=run_type,
            extra=metadata,
            project_name=self._project,
        )

        try:
            yield run
            run.end()
            run.post()
        except Exception as e:
            run.end(error=str(e))
            run.post()
            raise

    def log_answer(
        self,
        document_id: str,
        department_id: Optional[str],
        context_chars: int,
        context_truncated: bool,
        used_fallback: bool,
    ) -> None:
        """Log the context selected for an answer."""
        if not self.is_enabled:
            return

        self.client.create_run(
            name="handbook_context",
            run_type="retriever",
            project_name=self._project,
            inputs={
                "document_id": document_id,
                "department_id": department_id,
            },
            outputs={
                "context_chars": context_chars,
                "context_truncated": context_truncated,
                "used_fallback": used_fallback,
            },
        )


def span_metadata(**values: Any) -> dict[str, Any]:
    """Drop unset values so spans only carry what is known."""
    return {key: value for key, value in values.items() if value is not None}
