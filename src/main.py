"""Lunara API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import get_settings
from src.cycles.config_loader import get_prediction_config, reload_prediction_config
from src.cycles.models import LifestyleValidationError
from src.middleware.request_log import RequestLogMiddleware
from src.routers import cycles, health

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("lunara")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting Lunara API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    # Fail fast on a broken prediction config rather than on the first request
    if settings.prediction_config_path:
        reload_prediction_config(Path(settings.prediction_config_path))
    else:
        get_prediction_config()
    yield
    logger.info("Lunara API shut down")


# ---------- Error handlers ----------

async def lifestyle_error_handler(request: Request, exc: LifestyleValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Lunara API",
        description=(
            "Adaptive menstrual cycle prediction — recency-weighted cycle "
            "statistics, lifestyle-aware next-period estimates, fertile window "
            "and phase calculators."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_exception_handler(LifestyleValidationError, lifestyle_error_handler)

    # ---------- Middleware (order matters, outermost first) ----------

    app.add_middleware(RequestLogMiddleware)

    # CORS must be the innermost middleware so it can handle preflight
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(cycles.router, prefix="/api/v1")

    return app


app = create_app()
