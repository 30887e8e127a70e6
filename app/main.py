import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.api.v1.api import api_router
from app.db.session import Database
from app.services.notification_service import Notifier
from app.services.payment_service import PaymentGateway
from app.services.storage_service import LocalObjectStorage, ObjectStorage, build_storage

logger = logging.getLogger(__name__)

# CORS: use CORS_ORIGINS from env in production; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:3000", "http://localhost:3000",
]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    return f"{field}: {msg}" if field else msg


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


def create_app(database: Database | None = None, storage: ObjectStorage | None = None,
               payments: PaymentGateway | None = None, notifier: Notifier | None = None) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.database.dispose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.database = database
    app.state.storage = storage or build_storage(settings)
    app.state.payments = payments or PaymentGateway(
        settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET, settings.PAYMENT_CURRENCY
    )
    app.state.notifier = notifier or Notifier(database)

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # Serve locally stored uploads so document URLs resolve without a CDN
    storage_obj = app.state.storage
    if isinstance(storage_obj, LocalObjectStorage) and storage_obj.public_base_url.startswith("/"):
        os.makedirs(storage_obj.base_dir, exist_ok=True)
        app.mount(
            storage_obj.public_base_url,
            StaticFiles(directory=storage_obj.base_dir),
            name="media",
        )

    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
    return app


app = create_app()
