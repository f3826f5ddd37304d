"""Lunara adaptive cycle prediction engine.

Pure, synchronous functions over caller-owned data; nothing here performs
I/O apart from reading the bundled YAML config once.

Modules:
    dates            — ISO date parsing and day arithmetic
    config_loader    — Load/validate/hot-reload prediction_config.yaml
    models           — Engine input and output types
    pattern_analyzer — Recency-weighted cycle statistics and confidence
    predictor        — Lifestyle- and trend-adjusted next-period prediction
    fertility        — Calendar-method phase, fertile window and forecasts
    period_log       — Pure transitions over cycle data and period history
    insights         — Human-readable insights and irregularity screening
    symptoms         — Symptom logs and frequency insights
    cycle_tracker    — Caller-owned state object tying it all together
"""

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.cycle_tracker import CycleSnapshot, CycleTracker
from src.cycles.fertility import classify_phase, compute_fertility_window, predict_future_cycles
from src.cycles.insights import personalized_insights
from src.cycles.models import (
    AdaptivePrediction,
    CycleData,
    CyclePattern,
    LifestyleProfile,
    PeriodRecord,
)
from src.cycles.pattern_analyzer import PatternAnalyzer, analyze_pattern
from src.cycles.predictor import AdaptivePredictor, predict

__all__ = [
    "PredictionConfig",
    "get_prediction_config",
    "CycleTracker",
    "CycleSnapshot",
    "PatternAnalyzer",
    "AdaptivePredictor",
    "analyze_pattern",
    "predict",
    "classify_phase",
    "compute_fertility_window",
    "predict_future_cycles",
    "personalized_insights",
    "PeriodRecord",
    "LifestyleProfile",
    "CycleData",
    "CyclePattern",
    "AdaptivePrediction",
]
