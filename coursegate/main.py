"""CourseGate API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursegate.access.router import router as access_router
from coursegate.access.service import AccessGate
from coursegate.config import Settings, get_settings
from coursegate.core.context import get_request_id
from coursegate.core.database import init_async_cassandra, shutdown_async_cassandra
from coursegate.core.exceptions import CourseGateError, status_for_error
from coursegate.core.logging import configure_structlog, get_logger
from coursegate.core.middleware import RequestContextMiddleware
from coursegate.core.redis import init_redis, shutdown_redis
from coursegate.email import EmailService, Mailer, NullMailer
from coursegate.enrollments.router import router as enrollments_router
from coursegate.enrollments.service import EnrollmentService
from coursegate.health import router as health_router
from coursegate.messaging.router import router as messaging_router
from coursegate.messaging.service import MessagingService
from coursegate.payments.gateway import PaymentGateway, StripePaymentGateway
from coursegate.payments.router import router as payments_router
from coursegate.payments.service import PaymentService
from coursegate.store import (
    CassandraEnrollmentStore,
    EnrollmentStore,
    InMemoryEnrollmentStore,
)


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def wire_services(
    app: FastAPI,
    store: EnrollmentStore,
    settings: Settings,
    gateway: PaymentGateway | None = None,
    mailer: Mailer | None = None,
    redis=None,
) -> None:
    """Build the services on app.state, where the router dependencies find them."""
    access_gate = AccessGate(
        store, redis=redis, cache_ttl_seconds=settings.access_cache_ttl_seconds
    )

    app.state.store = store
    app.state.redis = redis
    app.state.access_gate = access_gate
    app.state.enrollment_service = EnrollmentService(
        store, mailer=mailer, currency=settings.payment_currency
    )
    app.state.messaging_service = MessagingService(store, access_gate)
    app.state.payment_service = (
        PaymentService(
            store, gateway, mailer=mailer, currency=settings.payment_currency
        )
        if gateway is not None
        else None
    )


def _build_mailer(settings: Settings) -> Mailer:
    if not settings.email_configured:
        return NullMailer()
    return EmailService(
        credentials_path=settings.email_credentials_path,
        sender_address=settings.email_sender_address,
        sender_name=settings.email_sender_name,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        store_backend=settings.store_backend,
    )

    # Redis is optional: without it every membership check reads the store
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without access cache",
            )

    if settings.store_backend == "memory":
        store: EnrollmentStore = InMemoryEnrollmentStore()
        logger.warning("memory_store_in_use", message="Data is lost on restart")
    else:
        session = await init_async_cassandra()
        store = CassandraEnrollmentStore(session, settings.cassandra_keyspace)
        logger.info("cassandra_store_initialized")

    gateway = None
    if settings.stripe_configured:
        gateway = StripePaymentGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret or "",
            payment_method_types=settings.payment_method_types,
        )
        logger.info("payment_gateway_initialized", currency=settings.payment_currency)
    else:
        logger.warning("payment_gateway_skipped", message="Stripe keys not configured")

    mailer = _build_mailer(settings)
    logger.info("mailer_initialized", mailer=type(mailer).__name__)

    wire_services(app, store, settings, gateway=gateway, mailer=mailer, redis=redis_client)
    logger.info("services_initialized")

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    if settings.store_backend == "cassandra":
        await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette from rendering stack traces
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course enrollment, payment and access control API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
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

    def _get_request_id_safe(request: Request) -> str | None:
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    def _error_body(request: Request, status_code: int, message: str) -> dict:
        return {
            "error": True,
            "message": message,
            "status_code": status_code,
            "request_id": _get_request_id_safe(request),
        }

    @app.exception_handler(CourseGateError)
    async def domain_exception_handler(
        request: Request, exc: CourseGateError
    ) -> ORJSONResponse:
        """Map domain errors to status codes."""
        status_code = status_for_error(exc)
        log_kwargs = {
            "code": exc.code,
            "detail": exc.message,
            "path": request.url.path,
            "method": request.method,
        }
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("domain_error", **log_kwargs)
        elif exc.code == "authorization_error":
            # Expected outcome of access checks, not a fault
            logger.info("access_denied", **log_kwargs)
        else:
            logger.warning("domain_error", **log_kwargs)

        return ORJSONResponse(
            status_code=status_code,
            content={**_error_body(request, status_code, exc.message), "code": exc.code},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request validation errors."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return ORJSONResponse(
            status_code=status_code,
            content={
                **_error_body(request, status_code, "Validation error"),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler; details are logged, never returned."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return ORJSONResponse(
            status_code=status_code,
            content=_error_body(
                request,
                status_code,
                "An unexpected error occurred. Please try again later.",
            ),
        )

    app.include_router(health_router)
    app.include_router(enrollments_router)
    app.include_router(payments_router)
    app.include_router(access_router)
    app.include_router(messaging_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "CourseGate API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
