"""
api/main.py -- FastAPI application entry point for the contributor accounts service.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds the account collaborators on startup (store, hasher, signer,
service) and disposes the database engine on shutdown.

Error contract: every non-2xx response body is {"message": ..., "code": ...}.
AuthError subclasses from the service map to fixed status codes here and
nowhere else.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.accounts import router as accounts_router
from api.routes.contributions import router as contributions_router
from api.routes.protected import router as protected_router
from auth.errors import (
    AuthError,
    InternalError,
    InvalidCredentials,
    InvalidInput,
    TokenInvalid,
    TokenMissing,
    UserExists,
    UserNotFound,
)
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenSigner
from core.config import Settings, get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("contrib.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Error taxonomy -> HTTP status
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidInput: 400,
    UserExists: 400,
    UserNotFound: 404,
    InvalidCredentials: 401,
    TokenMissing: 401,
    TokenInvalid: 403,
    InternalError: 500,
}


def status_for(exc: AuthError) -> int:
    """Return the HTTP status for an AuthError, walking the MRO for subclasses."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, code=code).model_dump(),
    )


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------


def build_auth_service(settings: Settings) -> AuthService:
    """Wire the store, hasher, and signer from settings into an AuthService."""
    return AuthService(
        store=UserStore(db_url=settings.database_url),
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        signer=TokenSigner(settings.secret_key, expire_seconds=settings.token_expire_seconds),
        min_password_length=settings.min_password_length,
    )


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the AuthService on startup and release the engine on shutdown."""
    logger.info("Contributor accounts API starting up")
    settings = get_settings()
    app.state.auth_service = build_auth_service(settings)
    logger.info("Auth initialized (token_expire_seconds=%d)", settings.token_expire_seconds)
    if settings.allow_password_reset:
        logger.warning(
            "POST /reset-password is enabled and does not verify the current password. "
            "Set ALLOW_PASSWORD_RESET=false to disable it."
        )

    yield

    app.state.auth_service.store.close()
    logger.info("Contributor accounts API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Contributor Accounts API",
    description="User registration, bearer-token login, and per-user contribution lists.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each add_middleware() call around the previous ones, so the
# last one registered is outermost. Registered innermost-first here so a
# request meets TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(accounts_router, tags=["Accounts"])
app.include_router(contributions_router, tags=["Contributions"])
app.include_router(protected_router, tags=["Protected"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map service failures onto their fixed status codes."""
    return _error(status_for(exc), exc.code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing body fields are client input errors: 400."""
    first = exc.errors()[0] if exc.errors() else {}
    # Integer loc parts are list indexes or JSON decode offsets, not field names.
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body" and not isinstance(p, int))
    message = f"Invalid {field}: {first.get('msg', 'validation failed')}" if field else "Request validation failed."
    return _error(400, "invalid_input", message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions.

    Routes raise HTTPException with a {"code", "message"} dict as detail; a
    plain string detail gets a generic http_<status> code.
    """
    if isinstance(exc.detail, dict):
        return _error(exc.status_code, exc.detail.get("code", f"http_{exc.status_code}"), exc.detail.get("message", ""))
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "Internal server error")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit and no auth -- load balancers must be able to poll it.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the database answers."""
    database = "ok"
    try:
        request.app.state.auth_service.store.ping()
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=__version__,
        components={"app": "ok", "database": database},
    )
