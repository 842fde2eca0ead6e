"""
StreamChat - Main Application Entry Point

Streaming chat backend: SSE replies, persisted sessions, regeneration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from streamchat.core.config import get_settings
from streamchat.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StreamChatError,
    UpstreamError,
    ValidationError,
)
from streamchat.core.logger import logger, setup_logging

APP_VERSION = "0.1.0"

# Error family -> (status code, short message); first match wins
ERROR_RESPONSES: list[tuple[type[StreamChatError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Invalid request"),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "Authentication required"),
    (AuthorizationError, status.HTTP_403_FORBIDDEN, "Permission denied"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not found"),
    (UpstreamError, status.HTTP_500_INTERNAL_SERVER_ERROR, "AI service call failed"),
]


def _error_body(msg: str, err: str) -> dict[str, str]:
    return {"msg": msg, "err": err}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting StreamChat in {settings.ENVIRONMENT} mode (llm={settings.LLM_PROVIDER})...")

    from streamchat.infrastructure.local.database import init_db

    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down StreamChat...")


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors onto HTTP responses with a ``{msg, err}`` body."""

    @app.exception_handler(StreamChatError)
    async def streamchat_error_handler(request: Request, exc: StreamChatError):
        for error_type, status_code, msg in ERROR_RESPONSES:
            if isinstance(exc, error_type):
                break
        else:
            status_code, msg = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"

        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
        else:
            logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
        return JSONResponse(status_code=status_code, content=_error_body(msg, exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(part) for part in e.get('loc', ()))}: {e.get('msg', '')}"
            for e in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Invalid request", errors),
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="StreamChat",
        description="Streaming chat orchestration with persisted sessions",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    from streamchat.api import chat

    app.include_router(chat.router, prefix="/api/ai", tags=["ai"])

    @app.get("/health")
    @app.get("/api/ai/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": APP_VERSION,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
