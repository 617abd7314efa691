"""FastAPI application providing the Game Catalog API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import games_router, games_v1_router
from .config import Settings, load_settings
from .database import create_tables, make_engine, make_session_factory
from .logging import configure_logging
from .middleware.logging import LoggingMiddleware
from .rendering import render
from .request_policies import apply_request_policies, get_negotiation_policy

configure_logging()

logger = logging.getLogger("catalog_api.main")

_DB_RETRY_AFTER_SECONDS = "30"


def _set_request_id_header(response: Response, request: Request) -> None:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers["X-Request-ID"] = request_id


def _negotiated(request: Request) -> str:
    return get_negotiation_policy(request.app).resolve(request)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Log validation errors and return the standard 422 response."""

    errors = jsonable_encoder(exc.errors())
    error_types = sorted({err.get("type", "unknown") for err in errors})
    logger.warning(
        "Request validation failed",
        extra={
            "event_dataset": "game-catalog-api.app",
            "event_action": "validation_failed",
            "http_status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "http_request_method": request.method,
            "url_path": request.url.path,
            "error_type": "RequestValidationError",
            "error_message": ",".join(error_types)[:128],
            "validation_error_count": len(errors),
        },
    )
    response = render(
        {"detail": errors},
        _negotiated(request),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        root_tag="Error",
    )
    _set_request_id_header(response, request)
    response.headers["Cache-Control"] = "no-store"
    return response


async def http_exception_handler_logged(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Log HTTP exceptions and render the detail in the negotiated format."""

    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.log(
        level,
        "HTTP exception raised",
        extra={
            "event_dataset": "game-catalog-api.app",
            "event_action": "http_exception",
            "http_status_code": exc.status_code,
            "http_request_method": request.method,
            "url_path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": detail[:256],
        },
    )
    response = render(
        {"detail": exc.detail},
        _negotiated(request),
        status_code=exc.status_code,
        root_tag="Error",
        headers=getattr(exc, "headers", None),
    )
    _set_request_id_header(response, request)
    return response


async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> Response:
    """Convert database errors into a retryable 503 response."""

    logger.exception(
        "Database error while handling request",
        extra={
            "event_dataset": "game-catalog-api.app",
            "event_action": "database_error",
            "http_status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            "http_request_method": request.method,
            "url_path": request.url.path,
            "error_type": type(exc).__name__,
        },
    )
    response = ORJSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Temporary database issue. Please retry later."},
        headers={
            "Retry-After": _DB_RETRY_AFTER_SECONDS,
            "Cache-Control": "no-store",
        },
    )
    _set_request_id_header(response, request)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """Ensure all responses include the request id header on failure."""

    response = ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )
    _set_request_id_header(response, request)
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and register its request policies."""

    settings = settings or load_settings()
    engine = make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        create_tables(engine)
        logger.info(
            "Game Catalog API started",
            extra={
                "event_action": "startup",
                "event_dataset": "game-catalog-api.app",
                "app_env": settings.app_env,
            },
        )
        yield
        engine.dispose()

    app = FastAPI(
        title="Game Catalog API",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(LoggingMiddleware)
    # CORS is added last so it wraps every other middleware.
    apply_request_policies(app, settings)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler_logged)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/")
    def read_root() -> dict[str, str]:
        """Health check endpoint for the API."""
        return {"message": "Game Catalog API"}

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(games_router, prefix=settings.api_prefix)
    app.include_router(games_v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
