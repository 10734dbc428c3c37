"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, the request-id middleware and routes.

Persistence Lifecycle:
- One engine per domain (blobs, chats, llms, metrics, workspace) is created
  at startup, each bound to its own database file
- Missing tables are created when AUTO_CREATE_SCHEMA is on
- One adapter per domain is stored in app.state for the route dependencies
- Engines are disposed at shutdown

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures every response, including malformed-JSON rejections, gets
  an X-Request-ID
"""

import json
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatsync.adapters import (
    BlobStoreAdapter,
    ConversationAdapter,
    LlmRegistryAdapter,
    MetricsAdapter,
    WorkspaceAdapter,
)
from chatsync.api.routes import create_api_router
from chatsync.config import Domain, Settings, get_settings
from chatsync.db import create_domain_engines, create_session_factory, dispose_engines
from chatsync.db.schema import ensure_schema
from chatsync.errors import ApiError, ApiErrorCode
from chatsync.logging import configure_logging, get_logger
from chatsync.middleware.request_id import RequestIDMiddleware
from chatsync.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)

logger = get_logger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    """First validation error as 'field: message'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{field}: {error.get('msg')}" if field else str(error.get("msg"))


def init_persistence(app: FastAPI, settings: Settings) -> None:
    """Create engines and adapters and attach them to app.state."""
    engines = create_domain_engines(settings)
    if settings.auto_create_schema:
        ensure_schema(engines)

    factories = {domain: create_session_factory(engine) for domain, engine in engines.items()}
    app.state.engines = engines
    app.state.blob_adapter = BlobStoreAdapter(factories[Domain.BLOBS])
    app.state.conversation_adapter = ConversationAdapter(factories[Domain.CHATS])
    app.state.llm_adapter = LlmRegistryAdapter(factories[Domain.LLMS])
    app.state.metrics_adapter = MetricsAdapter(factories[Domain.METRICS])
    app.state.workspace_adapter = WorkspaceAdapter(factories[Domain.WORKSPACE])

    logger.info(
        "persistence_initialized",
        domains=[domain.value for domain in engines],
        auto_create_schema=settings.auto_create_schema,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the domain databases on startup and close them on shutdown."""
    init_persistence(app, app.state.settings)

    yield

    dispose_engines(app.state.engines)
    logger.info("persistence_closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, uses cached settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(json_format=settings.log_json, level=settings.log_level)

    app = FastAPI(
        title="Chatsync API",
        description="Persistence API for conversations, stores, models and usage metrics",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (missing or mistyped fields)."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, _validation_message(exc)),
        )

    # Handle JSON decode errors from malformed JSON bodies
    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Catch JSON decode errors before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
