"""Cycle prediction endpoints.

Stateless: every call carries the caller's cycle data, period history and
lifestyle profile, and nothing is stored server-side.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from src.cycles.cycle_tracker import CycleTracker
from src.cycles.fertility import (
    calculate_pregnancy_probability,
    classify_phase,
    compute_fertility_window,
    predict_future_cycles,
)
from src.cycles.insights import personalized_insights
from src.cycles.pattern_analyzer import PatternAnalyzer
from src.cycles.predictor import AdaptivePredictor
from src.cycles.symptoms import analyze_symptoms
from src.dependencies import EngineConfig
from src.models.cycles import (
    AdaptivePredictionRead,
    CyclePatternRead,
    FertilityWindowRead,
    FertilityWindowRequest,
    FutureCyclesRequest,
    InsightsRead,
    InsightsRequest,
    PatternRequest,
    PhaseRead,
    PhaseRequest,
    PredictedCycleRead,
    PredictRequest,
    PregnancyCheckRead,
    PregnancyCheckRequest,
    SnapshotRead,
    SnapshotRequest,
    SymptomInsightsRead,
    SymptomInsightsRequest,
)

router = APIRouter(prefix="/cycles", tags=["cycles"])
logger = logging.getLogger("lunara.api.cycles")


# ---------- Adaptive engine ----------

@router.post("/pattern", response_model=CyclePatternRead)
async def analyze_pattern(body: PatternRequest, config: EngineConfig) -> Any:
    history = body.to_history()
    pattern = PatternAnalyzer(config).analyze(history, body.to_lifestyle(), body.as_of_date)
    return CyclePatternRead.model_validate(pattern)


@router.post("/predict", response_model=AdaptivePredictionRead)
async def predict(body: PredictRequest, config: EngineConfig) -> Any:
    prediction = AdaptivePredictor(config).predict(
        body.last_period_start,
        body.to_history(),
        body.to_lifestyle(),
        as_of_date=body.as_of_date,
    )
    return AdaptivePredictionRead.model_validate(prediction)


@router.post("/insights", response_model=InsightsRead)
async def insights(body: InsightsRequest, config: EngineConfig) -> Any:
    lifestyle = body.to_lifestyle()
    pattern = PatternAnalyzer(config).analyze(body.to_history(), lifestyle, body.as_of_date)
    return InsightsRead(
        pattern=CyclePatternRead.model_validate(pattern),
        insights=personalized_insights(pattern, lifestyle),
    )


# ---------- Calendar calculators ----------

@router.post("/phase", response_model=PhaseRead)
async def phase(body: PhaseRequest, config: EngineConfig) -> Any:
    result = classify_phase(body.day, body.cycle_data.to_cycle_data(), body.pregnancy_mode, config)
    return PhaseRead(day=body.day, phase=result)


@router.post("/fertility-window", response_model=FertilityWindowRead | None)
async def fertility_window(body: FertilityWindowRequest, config: EngineConfig) -> Any:
    window = compute_fertility_window(body.cycle_data.to_cycle_data(), body.today, config)
    if window is None:
        return None
    return FertilityWindowRead.model_validate(window)


@router.post("/future-cycles", response_model=list[PredictedCycleRead])
async def future_cycles(body: FutureCyclesRequest, config: EngineConfig) -> Any:
    cycles = predict_future_cycles(
        body.cycle_data.to_cycle_data(), body.count, body.pregnancy_mode, config
    )
    return [PredictedCycleRead.model_validate(c) for c in cycles]


# ---------- Tracker ----------

@router.post("/snapshot", response_model=SnapshotRead)
async def snapshot(body: SnapshotRequest, config: EngineConfig) -> Any:
    tracker = CycleTracker(
        cycle_data=body.cycle_data.to_cycle_data(),
        history=body.to_history(),
        lifestyle=body.to_lifestyle(),
        pregnancy_mode=body.pregnancy_mode,
        config=config,
    )
    result = tracker.snapshot(body.as_of_date)
    logger.debug(
        "Snapshot for %s: phase=%s next=%s",
        result.as_of_date,
        result.phase.value,
        result.prediction.next_period_date if result.prediction else None,
    )
    return SnapshotRead.model_validate(result)


# ---------- Symptoms ----------

@router.post("/symptom-insights", response_model=SymptomInsightsRead)
async def symptom_insights(body: SymptomInsightsRequest) -> Any:
    return SymptomInsightsRead(insights=analyze_symptoms([log.to_log() for log in body.logs]))


@router.post("/pregnancy-check", response_model=PregnancyCheckRead)
async def pregnancy_check(body: PregnancyCheckRequest) -> Any:
    probability = calculate_pregnancy_probability(
        body.days_late, body.symptoms, body.had_unprotected_sex
    )
    return PregnancyCheckRead(probability=probability)
