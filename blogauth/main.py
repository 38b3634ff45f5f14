"""FastAPI application entrypoint. No business logic; only wiring, middleware and error envelopes."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blogauth.api.v1 import router as v1_router
from blogauth.core.config import Settings, get_settings
from blogauth.core.errors import AccountLocked, AuthError, LockoutBookkeepingError, StorageFailure

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
        headers=headers,
    )


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    headers: dict[str, str] = {}
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, AccountLocked):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    return _error(exc.status_code, exc.message, headers=headers or None)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return _error(status.HTTP_400_BAD_REQUEST, "Validation failed", details=details)


async def handle_bookkeeping_error(request: Request, exc: LockoutBookkeepingError) -> JSONResponse:
    logger.error("Login attempt rejected without bookkeeping: %s", exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error during login")


async def handle_storage_failure(request: Request, exc: StorageFailure) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Blogauth API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV != "prod" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(LockoutBookkeepingError, handle_bookkeeping_error)
    app.add_exception_handler(StorageFailure, handle_storage_failure)

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Blogauth API"}

    return app


app = create_app()
