"""Construction and lookup of the shared answer service."""

import logging

from fastapi import Request

from handbook_layer.src.descriptors import load_descriptors
from handbook_layer.src.store import HandbookStore

from ..config.llm_providers import get_llm
from ..config.settings import Settings
from ..observability.tracing import HandbookTracer
from ..services.answer import AnswerService

logger = logging.getLogger(__name__)


def build_answer_service(settings: Settings) -> AnswerService:
    """
    Wire registry, store and chat model into an AnswerService.

    Raises:
        ValueError: If the handbook config is invalid or no LLM is configured
    """
    registry = load_descriptors(
        settings.handbooks_config_path(),
        base_dir=settings.handbook_base_path(),
    )
    store = HandbookStore(registry, settings.snapshot_dir)
    llm = get_llm(settings)
    tracer = HandbookTracer(settings) if settings.is_langsmith_configured() else None

    logger.info(
        f"Answer service ready: {len(registry)} handbooks, "
        f"snapshots in {store.snapshot_dir}"
    )
    return AnswerService(
        registry,
        store,
        llm,
        max_context_chars=settings.max_context_chars,
        context_lines=settings.context_lines,
        llm_timeout_seconds=settings.llm_timeout_seconds,
        rate_limit_retry_after=settings.rate_limit_retry_after,
        history_turns=settings.history_turns,
        university=settings.university_name,
        tracer=tracer,
    )


def get_answer_service(request: Request) -> AnswerService:
    return request.app.state.answer_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
