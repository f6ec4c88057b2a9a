"""FastAPI application entrypoint: lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_constants, get_settings
from app.dependencies import build_session_registry
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.routes import ask, sessions
from app.schemas.farm import FarmParameters
from app.services.metrics_engine import compute_metrics

logger = logging.getLogger("ghg_whatif")

SERVICE_VERSION = "0.1.0"


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    """Verify the session registry exists and the default parameters derive cleanly."""
    checks: dict[str, dict[str, Any]] = {}

    registry = getattr(app.state, "sessions", None)
    if registry is None:
        checks["sessions"] = {"ok": False, "message": "session registry not initialised"}
    else:
        checks["sessions"] = {"ok": True, "message": f"{len(registry)} active"}

    settings = get_settings()
    try:
        compute_metrics(
            FarmParameters(
                concentrate_feed=settings.default_concentrate_feed,
                nitrogen_rate=settings.default_nitrogen_rate,
            ),
            settings.default_feed_cost_per_kg,
            get_constants(),
        )
    except ValueError as exc:
        checks["metrics"] = {"ok": False, "message": str(exc)}
    else:
        checks["metrics"] = {"ok": True, "message": "ok"}
    return checks


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Create the in-memory session registry

    Shutdown:
      1. Drop all sessions (nothing is persisted)
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "GHG what-if service starting",
        extra={
            "log_level": settings.log_level,
            "max_sessions": settings.max_sessions,
        },
    )
    app.state.sessions = build_session_registry()

    yield

    logger.info("GHG what-if service shutting down")
    app.state.sessions = None


app = FastAPI(
    title="GHG What-If API",
    description=(
        "Farm what-if engine: derives emissions, yield, cost and efficiency "
        "metrics from feed and nitrogen inputs, ranks optimization suggestions, "
        "and interprets free-text commands that adjust the inputs."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check: verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "ghg-whatif",
        "version": SERVICE_VERSION,
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    checks = await _run_readiness_checks(app)
    ready = all(item["ok"] for item in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(sessions.router, prefix="/api/v1")
app.include_router(ask.router, prefix="/api/v1")
