"""Adaptive next-period predictor.

Starts from the analyzer's weighted average cycle length, then:

1. adds lifestyle shifts (high stress, intense exercise, poor sleep, shift
   work, PCOS, thyroid disorder),
2. nudges the estimate along a detected trend by at most 1.5 days,
3. builds an earliest/latest range of at least ±2 days around it.

Every cycle length that turns into a date is clamped to the plausible
21–45 day range, so ``earliest ≤ next_period_date ≤ latest`` always holds.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.dates import add_days, parse_date, round_days
from src.cycles.models import (
    AdaptivePrediction,
    ConfidenceLevel,
    CyclePattern,
    LifestyleProfile,
    PeriodRecord,
    PredictionRange,
    TrendDirection,
)
from src.cycles.pattern_analyzer import PatternAnalyzer

logger = logging.getLogger("lunara.cycles.predictor")


def confidence_level(
    confidence: float, config: PredictionConfig | None = None
) -> ConfidenceLevel:
    """Band a 0–100 confidence score into low / medium / high."""
    cfg = (config or get_prediction_config()).confidence
    if confidence >= cfg.high_threshold:
        return ConfidenceLevel.high
    if confidence >= cfg.medium_threshold:
        return ConfidenceLevel.medium
    return ConfidenceLevel.low


class AdaptivePredictor:
    """Predict the next period start from history and lifestyle.

    Usage::

        predictor = AdaptivePredictor()
        prediction = predictor.predict(date(2024, 3, 25), history)
        print(prediction.next_period_date, prediction.confidence_level)
    """

    def __init__(
        self,
        config: PredictionConfig | None = None,
        analyzer: PatternAnalyzer | None = None,
    ) -> None:
        self._config = config or get_prediction_config()
        self._analyzer = analyzer or PatternAnalyzer(self._config)

    def lifestyle_adjustment(self, lifestyle: LifestyleProfile | None) -> float:
        """Total cycle-length shift (days) implied by the lifestyle profile."""
        if lifestyle is None:
            return 0.0
        adjustment = 0.0
        for name in ("stress_level", "exercise_frequency", "sleep_quality", "work_schedule"):
            value = getattr(lifestyle, name)
            adjustment += self._config.lifestyle_adjustment(
                name, value.value if value else None
            )
        adjustment += self._config.condition_adjustment(lifestyle.health_conditions)
        return adjustment

    def trend_adjustment(self, pattern: CyclePattern) -> float:
        """Signed shift toward the detected trend, bounded by config."""
        trend = self._config.trend
        magnitude = min(
            pattern.cycle_variability * trend.variability_factor,
            trend.max_adjustment_days,
        )
        if pattern.trend_direction is TrendDirection.increasing:
            return magnitude
        if pattern.trend_direction is TrendDirection.decreasing:
            return -magnitude
        return 0.0

    def predict(
        self,
        last_period_start: date | str,
        history: Sequence[PeriodRecord],
        lifestyle: LifestyleProfile | None = None,
        as_of_date: date | None = None,
    ) -> AdaptivePrediction:
        """Generate an adaptive prediction.

        Args:
            last_period_start: Start of the most recent period (date or ISO string).
            history:           Period records sorted by start date ascending.
            lifestyle:         Optional lifestyle profile.
            as_of_date:        Reference "today" for the analyzer's recency score.

        Returns:
            AdaptivePrediction with the embedded pattern.

        Raises:
            ValueError: If ``last_period_start`` is a malformed date string.
        """
        anchor = parse_date(last_period_start)
        pattern = self._analyzer.analyze(history, lifestyle, as_of_date)
        bounds = self._config.bounds

        adjusted = float(pattern.average_cycle_length)
        adjusted += self.lifestyle_adjustment(lifestyle)
        adjusted += self.trend_adjustment(pattern)
        adjusted = bounds.clamp_cycle(adjusted)

        range_size = max(pattern.cycle_variability, self._config.confidence.min_range_days)
        earliest_length = max(adjusted - range_size, bounds.min_cycle_days)
        latest_length = min(adjusted + range_size, bounds.max_cycle_days)

        prediction = AdaptivePrediction(
            next_period_date=add_days(anchor, round_days(adjusted)),
            confidence=pattern.confidence,
            confidence_level=confidence_level(pattern.confidence, self._config),
            cycle_length_prediction=round_days(adjusted),
            period_length_prediction=pattern.average_period_length,
            prediction_range=PredictionRange(
                earliest=add_days(anchor, round_days(earliest_length)),
                latest=add_days(anchor, round_days(latest_length)),
            ),
            pattern=pattern,
        )
        logger.debug(
            "Predicted next period %s (cycle %.2f days, range %s..%s, %s)",
            prediction.next_period_date,
            adjusted,
            prediction.prediction_range.earliest,
            prediction.prediction_range.latest,
            prediction.confidence_level.value,
        )
        return prediction


def predict(
    last_period_start: date | str,
    history: Sequence[PeriodRecord],
    lifestyle: LifestyleProfile | None = None,
    as_of_date: date | None = None,
    config: PredictionConfig | None = None,
) -> AdaptivePrediction:
    """Module-level convenience wrapper around ``AdaptivePredictor.predict``."""
    return AdaptivePredictor(config).predict(last_period_start, history, lifestyle, as_of_date)
