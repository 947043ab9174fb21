import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.dependencies import use_case_scope
from app.api.deps import build_backend, repositories_scope
from app.api.routers.bookings import router as bookings_router
from app.api.routers.coupons import router as coupons_router
from app.api.routers.health import router as health_router
from app.api.routers.payments import router as payments_router
from app.api.routers.resources import router as resources_router
from app.api.routers.subscription import router as subscription_router
from app.api.routers.worker import router as worker_router
from app.api.schemas.base import ErrorResponse
from app.application.atomic import run_atomic
from app.config import Settings, get_settings
from app.domain.errors import DomainError
from app.infrastructure.messaging.periodic_worker import PeriodicWorker
from app.infrastructure.seed import seed_demo_data

logger = logging.getLogger(__name__)

# errorKind -> HTTP status
ERROR_STATUS = {
    "ValidationError": 422,
    "Unavailable": 409,
    "CouponNotFound": 422,
    "CouponAlreadyExists": 409,
    "CouponExpired": 422,
    "CouponNotApplicable": 422,
    "CouponLimitReached": 422,
    "MinimumAmountNotMet": 422,
    "InvalidStateTransition": 409,
    "BookingNotFound": 404,
    "BookingAccessDenied": 403,
    "ResourceNotFound": 404,
    "InvalidSignature": 401,
    "UnknownOrder": 404,
    "GatewayTimeout": 504,
    "GatewayError": 502,
    "TemporarilyUnavailable": 503,
    "IdempotencyConflict": 409,
}

RETRY_AFTER_SECONDS = "1"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _background_workers(backend) -> list[PeriodicWorker]:
    settings = backend.settings
    workers = []

    if settings.expiry_sweeper_enabled:
        async def sweep():
            async with use_case_scope(backend) as use_cases:
                return await use_cases["expire_bookings"].execute()

        workers.append(
            PeriodicWorker("expiry-sweeper", sweep, settings.expiry_sweep_interval_seconds)
        )

    if settings.outbox_dispatcher_enabled:
        async def dispatch():
            async with use_case_scope(backend) as use_cases:
                return await use_cases["dispatch_outbox"].execute()

        workers.append(
            PeriodicWorker("outbox-dispatcher", dispatch, settings.outbox_poll_interval_seconds)
        )
    return workers


async def seed_backend(backend) -> None:
    async with repositories_scope(backend) as repos:
        async def work():
            await seed_demo_data(repos.resource_catalog, repos.coupon_repo, backend.clock.now())

        await run_atomic(repos.tx_manager, work)


def create_app(settings: Settings | None = None, **backend_overrides) -> FastAPI:
    """
    Build the API.

    ``backend_overrides`` are passed to ``build_backend`` (clock, id_generator,
    payment_gateway, publisher, database) so tests can swap adapters.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        backend = build_backend(settings, **backend_overrides)
        if backend.database is not None:
            await backend.database.create_schema()
        if settings.seed_demo_data:
            await seed_backend(backend)
        app.state.backend = backend

        workers = _background_workers(backend)
        for worker in workers:
            worker.start()
        app.state.workers = workers
        logger.info(
            "Booking settlement API started",
            extra={
                "storage": "memory" if backend.memory is not None else "sql",
                "payment_provider": backend.payment_gateway.provider,
            },
        )
        yield
        for worker in workers:
            await worker.stop()
        await backend.dispose()

    app = FastAPI(
        title="Booking Settlement API",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = ERROR_STATUS.get(exc.code, 400)
        headers = {"Retry-After": RETRY_AFTER_SECONDS} if status_code == 503 else None
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error_kind=exc.code, message=exc.message).model_dump(by_alias=True),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_kind="ValidationError", message=details or "Invalid request"
            ).model_dump(by_alias=True),
        )

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler to prevent stack trace exposure to clients.
        All unhandled exceptions are logged internally and return a generic error message.
        """
        error_id = str(uuid.uuid4())

        logger.error(
            "Unhandled exception occurred",
            exc_info=exc,
            extra={
                "error_id": error_id,
                "path": request.url.path,
                "method": request.method,
                "client_host": request.client.host if request.client else None,
            },
        )

        return JSONResponse(
            status_code=500,
            content={
                "errorKind": "InternalError",
                "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists.",
                "error_id": error_id,
            },
        )

    app.include_router(health_router, tags=["Health"])
    app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
    app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
    app.include_router(coupons_router, prefix="/api/v1", tags=["Coupons"])
    app.include_router(resources_router, prefix="/api/v1", tags=["Resources"])
    app.include_router(subscription_router, prefix="/api/v1", tags=["Subscription"])
    app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])
    return app


app = create_app()
