from datetime import timedelta
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from . import accounts, db
from .config import DEV_SECRET, Settings
from .deps import (
    CorrelationIdFilter,
    bind_correlation_id,
    current_correlation_id,
    new_correlation_id,
    reset_correlation_id,
)
from .errors import FoodOrderingError
from .images import CloudinaryStorage, ImageUploader
from .metrics import MetricsMiddleware, metrics_endpoint
from .otp import OtpService, OtpStore, SmsSender
from .routers import admin, customer, delivery, shopping, vendor
from .security import Identity

SERVICE_NAME = "food-ordering"

logger = logging.getLogger(SERVICE_NAME)


# ----- Logging -----
def configure_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] [food-ordering] [cid=%(correlation_id)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def _error_body(code: str, message: str, **extra):
    return {"detail": {"code": code, "message": message, "correlationId": current_correlation_id(), **extra}}


# ----- Init -----
def create_app(settings: Settings | None = None, image_storage=None, sms_sender=None, password_hasher=None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging()
    if settings.app_secret == DEV_SECRET:
        logger.warning("APP_SECRET is not set, using the development secret")

    engine = db.make_engine(settings.database_url)
    db.init_db(engine)

    app = FastAPI(title=SERVICE_NAME, version="v1")
    app.add_middleware(MetricsMiddleware, service_name=SERVICE_NAME)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = db.make_session_factory(engine)
    app.state.identity = Identity(
        settings.app_secret,
        token_ttl=timedelta(days=settings.token_ttl_days),
        hasher=password_hasher,
    )
    app.state.otp = OtpService(
        OtpStore(ttl_seconds=settings.otp_ttl_seconds),
        sms_sender or SmsSender(settings.notification_service_url),
    )
    app.state.images = ImageUploader(
        image_storage
        or CloudinaryStorage(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        ),
        failure_log=settings.failure_log_path,
        retries=settings.upload_retries,
        backoff_seconds=settings.upload_backoff_seconds,
    )

    with app.state.session_factory() as s:
        accounts.ensure_admin(s, app.state.identity, settings.admin_email, settings.admin_password)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        cid = new_correlation_id(request.headers.get("X-Correlation-Id"))
        token = bind_correlation_id(cid)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)
        response.headers["X-Correlation-Id"] = cid
        return response

    # ----- Error handling -----
    @app.exception_handler(FoodOrderingError)
    async def domain_error_handler(request: Request, exc: FoodOrderingError):
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                errors=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "Internal server error"),
        )

    # ----- Infra Endpoints -----
    @app.get("/health")
    def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/metrics")
    def metrics():
        return metrics_endpoint()

    for module in (customer, vendor, delivery, admin, shopping):
        app.include_router(module.router)

    return app
