"""
FastAPI application for the handbook chatbot.

Provides REST endpoints for:
- Asking questions about a faculty's handbook
- Listing available handbooks and departments
- Health checks
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.settings import Settings, get_settings
from ..observability.tracing import configure_langsmith
from ..services.answer import AnswerService
from ..services.errors import INTERNAL_ERROR_MESSAGE, MALFORMED_REQUEST_MESSAGE
from .dependencies import build_answer_service
from .routes import chat_router, health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    settings = app.state.settings
    configure_langsmith(settings)
    if app.state.answer_service is None:
        app.state.answer_service = build_answer_service(settings)
    yield
    # Shutdown (nothing to clean up)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AnswerService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (cached settings if None)
        service: Prebuilt answer service; built at startup if None
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Handbook Chatbot API",
        description="Question answering over university student handbooks",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.answer_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError):
        logger.info(f"Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": MALFORMED_REQUEST_MESSAGE})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})

    # Include routers
    app.include_router(health_router)
    app.include_router(chat_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "handbook-chatbot",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "chatbot.api.main:app",
        host="0.0.0.0",
        port=settings.port,
    )
