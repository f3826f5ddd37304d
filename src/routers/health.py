"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from src.cycles.config_loader import ConfigValidationError, get_prediction_config
from src.dependencies import AppSettings

router = APIRouter(tags=["system"])
logger = logging.getLogger("lunara.health")


@router.get("/health")
async def health_check(settings: AppSettings) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports whether the prediction config is loaded and valid.
    """
    config_version: str | None = None
    try:
        config_version = get_prediction_config().version
    except (ConfigValidationError, FileNotFoundError) as exc:
        logger.warning("Health check config probe failed: %s", exc)

    return {
        "status": "healthy" if config_version else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "prediction_config": config_version or "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
