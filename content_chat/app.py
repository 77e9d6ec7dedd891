"""
Main FastAPI application.

This file wires together all layers:
- Domain: Entities and exceptions
- Search: Query enhancement, scoring and ranking
- Infrastructure: Content store client
- Repositories: Local JSON persistence
- Services: Business logic orchestration
- Routers: HTTP endpoints
"""

import re
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .dependencies import set_services
from .domain.exceptions import (
    BotInactiveException,
    BotNotFoundException,
    ContentChatException,
    ContentStoreException,
    IngestionException,
    LLMProviderNotConfiguredException,
    LLMServiceException,
    ValidationException,
)
from .infrastructure.contentstack_client import ContentstackClient
from .logging_config import bind_request_id, clear_request_context, setup_logging
from .metrics import metrics_endpoint, track_request
from .repositories.bot_repository import JsonBotRepository
from .repositories.json_store import JsonFileStore
from .repositories.upload_history_repository import JsonUploadHistoryRepository
from .routers import bot_router, chat_router, content_router, health_router, upload_router
from .services.bot_service import BotService
from .services.content_service import ContentService
from .services.llm_service import LLMService
from .services.upload_service import UploadService

logger = structlog.get_logger(__name__)

# Domain exception -> HTTP status; first matching base class wins
EXCEPTION_STATUS = (
    (BotNotFoundException, status.HTTP_404_NOT_FOUND),
    (ValidationException, status.HTTP_400_BAD_REQUEST),
    (BotInactiveException, status.HTTP_400_BAD_REQUEST),
    (IngestionException, status.HTTP_400_BAD_REQUEST),
    (LLMProviderNotConfiguredException, status.HTTP_400_BAD_REQUEST),
    (ContentStoreException, status.HTTP_502_BAD_GATEWAY),
    (LLMServiceException, status.HTTP_502_BAD_GATEWAY),
)


def status_for_exception(exc: ContentChatException) -> int:
    for exception_type, status_code in EXCEPTION_STATUS:
        if isinstance(exc, exception_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_code(exc: Exception) -> str:
    """BotNotFoundException -> bot_not_found."""
    name = exc.__class__.__name__.removesuffix("Exception")
    return re.sub(r"(?<!^)(?=[A-Z][a-z])", "_", name).lower()


def create_services(settings: Settings) -> tuple:
    """
    Create all services with their dependencies.

    Returns:
        (content_service, llm_service, bot_service, upload_service)
    """
    client = ContentstackClient(
        settings.contentstack,
        timeout=settings.REQUEST_TIMEOUT,
        max_retries=settings.MAX_RETRIES,
    )
    content_service = ContentService(client, fetch_limit=settings.SEARCH_FETCH_LIMIT)

    llm_service = LLMService(
        settings.llm_api_keys,
        timeout=settings.REQUEST_TIMEOUT,
        referer=settings.OPENROUTER_REFERER,
        app_title=settings.APP_NAME,
    )

    data_dir = Path(settings.DATA_DIR)
    bot_service = BotService(
        JsonBotRepository(JsonFileStore(data_dir / "bots.json")),
        content_service,
        llm_service,
    )
    upload_service = UploadService(
        content_service,
        JsonUploadHistoryRepository(JsonFileStore(data_dir / "upload_history.json")),
        temp_dir=settings.TEMP_DIR,
    )
    return content_service, llm_service, bot_service, upload_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting content chat service", version=settings.VERSION)

    content_service, llm_service, bot_service, upload_service = create_services(settings)
    set_services(content_service, llm_service, bot_service, upload_service)

    if not settings.contentstack.api_key:
        logger.warning("Contentstack credentials missing; content endpoints will fail")
    logger.info("LLM providers available", providers=llm_service.get_available_providers())

    yield

    logger.info("Shutting down content chat service")
    await content_service.client.close()
    await llm_service.close()
    set_services(None, None, None, None)
    logger.info("Content chat service shut down complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Content search and LLM chatbot service for a headless CMS",
        version=settings.VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def track_metrics(request: Request, call_next):
        """Track Prometheus metrics, labelled by route template."""
        start_time = time.perf_counter()
        response = await call_next(request)

        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        track_request(
            request.method, endpoint, response.status_code, time.perf_counter() - start_time
        )
        return response

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID for log correlation."""
        request_id = bind_request_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(health_router.router)
    app.include_router(content_router.router)
    app.include_router(chat_router.router)
    app.include_router(bot_router.router)
    app.include_router(upload_router.router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint."""
        return metrics_endpoint()

    @app.get("/")
    async def root():
        """Root endpoint with service information."""
        return {
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "status": "operational",
            "docs": "/api/docs",
            "health": "/api/v1/health",
            "ready": "/api/v1/ready",
        }

    @app.exception_handler(ContentChatException)
    async def domain_exception_handler(request: Request, exc: ContentChatException):
        """Map domain exceptions to JSON error responses."""
        status_code = status_for_exception(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            error=exc.message,
            status_code=status_code,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": _error_code(exc),
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        # Runs outside the request ID middleware, so read the ID it stored
        request_id = getattr(request.state, "request_id", None)
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            request_id=request_id,
            exc_info=True,
        )
        content = {
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
        }
        if settings.DEBUG:
            content["details"] = {"error": str(exc)}
        headers = {"X-Request-ID": request_id} if request_id else None
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content, headers=headers
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "content_chat.app:app",
        host=_settings.HOST,
        port=_settings.PORT,
        log_level=_settings.LOG_LEVEL.lower(),
    )
