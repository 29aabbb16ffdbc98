"""Livecast API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from livecast.comments.router import router as comments_router
from livecast.comments.service import LiveCommentService
from livecast.comments.store import CommentStore
from livecast.config import Settings, get_settings
from livecast.core.context import get_request_id
from livecast.core.logging import configure_structlog, get_logger
from livecast.core.middleware import RequestContextMiddleware
from livecast.events.broadcaster import EventBroadcaster
from livecast.events.router import router as events_router
from livecast.health import router as health_router
from livecast.moderation.filter import WordFilter
from livecast.moderation.router import router as moderation_router


logger = get_logger(__name__)


def build_live_comment_service(settings: Settings) -> LiveCommentService:
    """Wire the store, filter and broadcaster for one application instance."""
    return LiveCommentService(
        store=CommentStore(
            default_name=settings.comment_default_name,
            default_reply_name=settings.reply_default_name,
        ),
        word_filter=WordFilter(initial_words=settings.moderation_initial_words),
        broadcaster=EventBroadcaster(queue_size=settings.events_queue_size),
    )


def _is_malformed_body(errors: list[dict]) -> bool:
    """True when the body is not JSON or not an object at all."""
    for err in errors:
        if err.get("type") == "json_invalid":
            return True
        if tuple(err.get("loc", ())) == ("body",) and err.get("type") != "missing":
            return True
    return False


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_structlog(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info(
            "starting_application",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
        )

        app.state.live_comment_service = build_live_comment_service(settings)
        logger.info(
            "live_comment_service_initialized",
            queue_size=settings.events_queue_size,
            initial_ng_words=len(settings.moderation_initial_words),
        )

        yield

        logger.info("shutting_down_application")
        app.state.live_comment_service.broadcaster.close()
        app.state.live_comment_service = None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Live comment broadcast API",
        debug=False,  # Never expose stack traces in responses
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )
    app.state.settings = settings

    # Request id and logging context
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def error_response(
        request: Request,
        status_code: int,
        code: str,
        message: str,
        **extra: object,
    ) -> ORJSONResponse:
        """Uniform error envelope shared by every handler."""
        request_id = getattr(request.state, "request_id", None) or get_request_id()
        return ORJSONResponse(
            status_code=status_code,
            content={
                "error": True,
                "code": code,
                "message": message,
                "status_code": status_code,
                "request_id": request_id,
                **extra,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Live comment errors arrive here already carrying code and extras."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            code=getattr(exc, "code", None),
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        server_error = exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        return error_response(
            request,
            exc.status_code,
            getattr(exc, "code", "http_error"),
            "Internal server error" if server_error else str(exc.detail),
            **getattr(exc, "extra", {}),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Non-object bodies are malformed; field problems are invalid input."""
        errors = list(exc.errors())
        malformed = _is_malformed_body(errors)

        logger.warning(
            "validation_error",
            errors=[{"loc": err.get("loc"), "type": err.get("type")} for err in errors],
            malformed=malformed,
            path=request.url.path,
            method=request.method,
        )

        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "malformed_request" if malformed else "invalid_input",
            "invalid json" if malformed else "Validation error",
            details=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", ())),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in errors
            ],
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Log unhandled errors in full but keep the response generic."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )

        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "An unexpected error occurred. Please try again later.",
        )

    app.include_router(health_router)
    app.include_router(comments_router)
    app.include_router(moderation_router)
    app.include_router(events_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Livecast API",
            "version": settings.app_version,
            "events": "/events",
        }

    return app


app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "livecast.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_config=None,
    )


if __name__ == "__main__":
    run()
