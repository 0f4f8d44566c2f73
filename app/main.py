"""
PakAlert Report Verification - FastAPI Application Entry Point

Crowd-sourced weather reports are rate limited, checked for floods and
clusters, scored against live weather and reporter history, then stored
with an admission tier (auto_verified / pending_review / flagged).

DESIGN PRINCIPLES:
- The engine produces a confidence score, not a certainty
- Every external dependency degrades gracefully; submitters always get
  accepted, duplicate-rejected or rate-limited, never an opaque error
- Rate limiting is content-agnostic and runs before everything else
"""

import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.settings import settings
from app.models.verification import RateLimited
from app.routes import health, reports, weather
from app.services.rate_limiter import get_rate_limiter, run_periodic_sweep
from app.utils.security import hash_ip_address

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Trust and verification engine for crowd-sourced weather reports",
    debug=settings.DEBUG
)
app.state.rate_limiter = get_rate_limiter()
app.state.sweep_task = None


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"🔥 Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "detail": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Catch Pydantic validation errors and log them."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"ok": False, "detail": exc.errors()}
    )


@app.middleware("http")
async def rate_limit_requests(request: Request, call_next):
    """
    Abuse rate limiter applied to every inbound request, keyed on the
    hashed client address.
    """
    if settings.RATE_LIMIT_ENABLED:
        client_host = request.client.host if request.client else None
        identity = hash_ip_address(client_host) or "unknown"
        decision = request.app.state.rate_limiter.admit(identity)
        if isinstance(decision, RateLimited):
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "ok": False,
                    "error": "Too many requests. Please try again later.",
                    "retry_after": decision.retry_after_seconds,
                },
                headers={"Retry-After": str(decision.retry_after_seconds)},
            )
    return await call_next(request)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
}
# Swagger UI and ReDoc load their assets from a CDN
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Hardening headers on every response, rate-limited ones included."""
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        if header == "Content-Security-Policy" and request.url.path.startswith(DOCS_PATHS):
            continue
        response.headers.setdefault(header, value)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firestore connection, rate-limiter sweep
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not settings.USE_MOCK_DB:
        from app.config.firebase import initialize_firestore
        try:
            initialize_firestore()
        except RuntimeError as e:
            logger.warning(f"Firestore initialization failed: {e}")
            logger.warning("The app will start but report storage may fail.")

    app.state.sweep_task = asyncio.create_task(
        run_periodic_sweep(app.state.rate_limiter, settings.RATE_LIMIT_SWEEP_MINUTES * 60)
    )


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    task = app.state.sweep_task
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(reports.router)
app.include_router(weather.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "reports": "/reports",
        "geocode": "/weather/geocode"
    }
