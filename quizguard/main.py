"""
Quizguard — FastAPI Application Entry Point

Production-ready application with:
- Async lifespan management (DB pool warm-up and disposal)
- CORS, timeout, and structured-logging middleware
- Health-check endpoints (liveness + deep readiness)
- Active-request tracking for graceful shutdown
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from quizguard.config import get_settings
from quizguard.database import async_session_factory, engine

settings = get_settings()

# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.LOG_LEVEL.upper())
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("quizguard")

# ---------------------------------------------------------------------------
# Active request counter for graceful shutdown
# ---------------------------------------------------------------------------

_active_requests: int = 0
_active_requests_lock = asyncio.Lock()
_shutdown_event = asyncio.Event()

DRAIN_TIMEOUT_SECONDS = 15


async def _increment_active() -> None:
    global _active_requests
    async with _active_requests_lock:
        _active_requests += 1


async def _decrement_active() -> None:
    global _active_requests
    async with _active_requests_lock:
        _active_requests -= 1


async def _drain_active_requests() -> None:
    """Wait until all in-flight requests complete or timeout expires."""
    deadline = time.monotonic() + DRAIN_TIMEOUT_SECONDS
    while True:
        async with _active_requests_lock:
            if _active_requests <= 0:
                break
        if time.monotonic() >= deadline:
            logger.warning(
                "drain_timeout_exceeded",
                remaining_requests=_active_requests,
            )
            break
        await asyncio.sleep(0.25)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of long-lived resources."""
    logger.info(
        "startup_begin",
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
    )

    # Engine is created at module level in quizguard.database; a simple
    # query warms the pool.
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("database_pool_initialised")

    logger.info("startup_complete")

    yield

    logger.info("shutdown_begin")

    _shutdown_event.set()
    await _drain_active_requests()

    await engine.dispose()
    logger.info("database_pool_closed")

    logger.info("shutdown_complete")


# ---------------------------------------------------------------------------
# Middleware classes
# ---------------------------------------------------------------------------

class TimeoutMiddleware(BaseHTTPMiddleware):
    """Abort requests that exceed a configurable wall-clock timeout."""

    def __init__(self, app, timeout_seconds: float = 70.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await asyncio.wait_for(
                call_next(request),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "request_timeout",
                method=request.method,
                path=request.url.path,
                timeout=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=504,
                content={"detail": "Request timed out"},
            )


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()

        await _increment_active()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request_error",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
            )
            raise
        finally:
            await _decrement_active()

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request_handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Quizguard",
    description="Quiz attempt suspicion scoring service",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- Middleware (applied in reverse order — last added runs first) ---------- #

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- Health-check endpoints ------------------------------------------------ #


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    """Lightweight liveness probe — always returns healthy if the process is
    running."""
    return {"status": "healthy"}


@app.get("/health/deep", tags=["health"])
async def health_deep() -> dict:
    """Deep readiness probe — verifies database connectivity."""
    result: dict = {
        "status": "healthy",
        "database": "connected",
    }

    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("health_db_failure", error=str(exc))
        result["database"] = f"error: {exc}"
        result["status"] = "degraded"

    return result


# -- API router ------------------------------------------------------------ #

from quizguard.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
