"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.config import Settings, get_settings
from src.cycles.config_loader import PredictionConfig, get_prediction_config

# Annotated shortcuts for route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
EngineConfig = Annotated[PredictionConfig, Depends(get_prediction_config)]
