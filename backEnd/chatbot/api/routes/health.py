"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ...config.settings import Settings
from ...services.answer import AnswerService
from ..dependencies import get_answer_service, get_app_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    """Basic health check."""
    return {"status": "healthy", "service": "handbook-chatbot"}


@router.get("/ready")
async def readiness_check(
    settings: Settings = Depends(get_app_settings),
    service: AnswerService = Depends(get_answer_service),
):
    """
    Readiness check - verifies the LLM, handbook config and snapshot
    directory are available.
    """
    checks = {
        "llm_configured": settings.is_llm_configured(),
        "handbooks_configured": len(service.registry) > 0,
        "snapshot_dir_present": service.store.snapshot_dir.is_dir(),
    }

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "degraded",
        "checks": checks,
        "cached_handbooks": service.store.cached_ids,
    }


@router.get("/config")
async def config_info(settings: Settings = Depends(get_app_settings)):
    """
    Configuration info (non-sensitive).
    """
    return {
        "llm_provider": "azure" if settings.is_azure_configured() else "openai",
        "llm_model": settings.openai_model,
        "max_context_chars": settings.max_context_chars,
        "context_lines": settings.context_lines,
        "langsmith_project": settings.langchain_project if settings.is_langsmith_configured() else None,
        "langsmith_enabled": settings.is_langsmith_configured(),
    }
