"""Adaptive cycle pattern analysis.

Turns an ordered period history into a ``CyclePattern``:

- Cycle lengths (start-to-start) and period lengths (start-to-end, inclusive)
  are sampled, with implausible values dropped as logging noise.
- Each sample is weighted by recency with exponential decay, so the most
  recent transition has weight 1 and older ones fade geometrically instead of
  being cut off at a fixed window.
- Weighted mean and weighted population std dev summarize both series.
- A 0–100 confidence score adds up data quantity, consistency, recency,
  completeness and (optionally) a capped lifestyle-stability bonus.
- Trend direction comes from an OLS slope over the last few cycle lengths.

The history must be sorted by start date ascending.  Nothing here mutates its
inputs, so the analyzer can be called on every new log entry.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.dates import days_between, round_days, round_half_up
from src.cycles.models import (
    CyclePattern,
    LifestyleProfile,
    PeriodRecord,
    TrendDirection,
)

logger = logging.getLogger("lunara.cycles.pattern_analyzer")


@dataclass(frozen=True)
class WeightedSample:
    """A cycle or period length with its recency weight."""

    length: int
    weight: float


# ---------------------------------------------------------------------------
# Statistics helpers
# ---------------------------------------------------------------------------


def _recency_weight(index: int, total: int, decay: float) -> float:
    return math.exp(-decay * (total - index - 1))


def weighted_mean(samples: Sequence[WeightedSample]) -> float | None:
    """Weighted arithmetic mean, or None when there is no weight to divide by."""
    total_weight = sum(s.weight for s in samples)
    if not samples or total_weight <= 0:
        return None
    return sum(s.length * s.weight for s in samples) / total_weight


def weighted_std(samples: Sequence[WeightedSample], mean: float) -> float:
    """Weighted population standard deviation (0.0 for fewer than 2 samples)."""
    if len(samples) < 2:
        return 0.0
    total_weight = sum(s.weight for s in samples)
    variance = sum(s.weight * (s.length - mean) ** 2 for s in samples) / total_weight
    return math.sqrt(variance)


def ols_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index 0..n-1."""
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    return (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class PatternAnalyzer:
    """Compute a ``CyclePattern`` from period history.

    Usage::

        analyzer = PatternAnalyzer()
        pattern = analyzer.analyze(history, lifestyle=profile)
        print(pattern.average_cycle_length, pattern.confidence)
    """

    def __init__(self, config: PredictionConfig | None = None) -> None:
        self._config = config or get_prediction_config()

    def default_pattern(self) -> CyclePattern:
        """Pattern returned when there is not enough history to analyze."""
        d = self._config.defaults
        return CyclePattern(
            average_cycle_length=d.cycle_length,
            average_period_length=d.period_length,
            cycle_variability=0.0,
            period_variability=0.0,
            confidence=d.confidence,
            data_quality=0.0,
            trend_direction=TrendDirection.stable,
            cycles_analyzed=0,
        )

    def cycle_samples(self, history: Sequence[PeriodRecord]) -> list[WeightedSample]:
        """Start-to-start gaps within bounds, weighted by recency."""
        bounds = self._config.bounds
        total = len(history)
        samples: list[WeightedSample] = []
        for i in range(1, total):
            length = days_between(history[i - 1].start_date, history[i].start_date)
            if bounds.min_cycle_days <= length <= bounds.max_cycle_days:
                weight = _recency_weight(i, total, self._config.recency_decay)
                samples.append(WeightedSample(length=length, weight=weight))
            else:
                logger.debug(
                    "Dropping cycle sample of %d days ending %s",
                    length, history[i].start_date,
                )
        return samples

    def period_samples(self, history: Sequence[PeriodRecord]) -> list[WeightedSample]:
        """Inclusive period lengths within bounds, weighted by history position."""
        bounds = self._config.bounds
        total = len(history)
        samples: list[WeightedSample] = []
        for index, record in enumerate(history):
            if record.end_date is None:
                continue
            length = days_between(record.start_date, record.end_date) + 1
            if bounds.min_period_days <= length <= bounds.max_period_days:
                weight = _recency_weight(index, total, self._config.recency_decay)
                samples.append(WeightedSample(length=length, weight=weight))
        return samples

    def analyze(
        self,
        history: Sequence[PeriodRecord],
        lifestyle: LifestyleProfile | None = None,
        as_of_date: date | None = None,
    ) -> CyclePattern:
        """Analyze a period history.

        Args:
            history:    Period records sorted by start date ascending.
            lifestyle:  Optional lifestyle profile for the confidence bonus.
            as_of_date: Reference "today" for the recency score.

        Returns:
            CyclePattern.  With fewer than two records, or with no plausible
            cycle gap at all, the default pattern is returned.
        """
        if len(history) < 2:
            return self.default_pattern()

        cycles = self.cycle_samples(history)
        if not cycles:
            logger.info(
                "No plausible cycle gaps in %d records; using default pattern",
                len(history),
            )
            return self.default_pattern()

        periods = self.period_samples(history)
        defaults = self._config.defaults

        avg_cycle = weighted_mean(cycles)
        avg_period = weighted_mean(periods)
        if avg_cycle is None:
            avg_cycle = float(defaults.cycle_length)
        if avg_period is None:
            avg_period = float(defaults.period_length)

        cycle_variability = weighted_std(cycles, avg_cycle)
        period_variability = weighted_std(periods, avg_period)

        today = as_of_date or date.today()
        data_quality = (
            self._quantity_score(len(cycles))
            + self._consistency_score(cycle_variability)
            + self._recency_score(days_between(history[-1].start_date, today))
            + self._completeness_score(history)
        )
        confidence = data_quality
        if lifestyle is not None:
            confidence += self.lifestyle_bonus(lifestyle)

        pattern = CyclePattern(
            average_cycle_length=round_days(avg_cycle),
            average_period_length=round_days(avg_period),
            cycle_variability=round_half_up(cycle_variability, 1),
            period_variability=round_half_up(period_variability, 1),
            confidence=_clamp_score(confidence),
            data_quality=_clamp_score(data_quality),
            trend_direction=self.trend_direction(cycles),
            cycles_analyzed=len(cycles),
        )
        logger.debug(
            "Analyzed %d records: cycle=%d±%.1f period=%d confidence=%.1f trend=%s",
            len(history),
            pattern.average_cycle_length,
            pattern.cycle_variability,
            pattern.average_period_length,
            pattern.confidence,
            pattern.trend_direction.value,
        )
        return pattern

    # ------------------------------------------------------------------
    # Score components
    # ------------------------------------------------------------------

    @staticmethod
    def _quantity_score(sample_count: int) -> float:
        if sample_count >= 6:
            return 35.0
        if sample_count >= 4:
            return 25.0
        if sample_count >= 2:
            return 15.0
        return 5.0

    @staticmethod
    def _consistency_score(variability: float) -> float:
        if variability <= 1.5:
            return 25.0
        if variability <= 3:
            return 15.0
        if variability <= 5:
            return 8.0
        return 0.0

    @staticmethod
    def _recency_score(days_since_last: int) -> float:
        if days_since_last <= 35:
            return 15.0
        if days_since_last <= 60:
            return 8.0
        return 0.0

    @staticmethod
    def _completeness_score(history: Sequence[PeriodRecord]) -> float:
        complete = sum(1 for r in history if r.end_date is not None)
        return 10.0 * complete / len(history)

    def lifestyle_bonus(self, lifestyle: LifestyleProfile) -> float:
        """Capped confidence bonus for cycle-stabilizing lifestyle factors."""
        cfg = self._config.confidence
        bonus = 0.0
        if lifestyle.age and cfg.age_min <= lifestyle.age <= cfg.age_max:
            bonus += cfg.age_bonus
        for name in ("stress_level", "exercise_frequency", "sleep_quality", "work_schedule"):
            value = getattr(lifestyle, name)
            bonus += self._config.lifestyle_bonus(name, value.value if value else None)
        return min(bonus, cfg.lifestyle_bonus_cap)

    def trend_direction(self, cycles: Sequence[WeightedSample]) -> TrendDirection:
        """Classify the slope of the most recent cycle lengths."""
        trend = self._config.trend
        if len(cycles) < trend.min_samples:
            return TrendDirection.stable
        recent = [s.length for s in cycles[-trend.window:]]
        slope = ols_slope(recent)
        if slope > trend.slope_threshold:
            return TrendDirection.increasing
        if slope < -trend.slope_threshold:
            return TrendDirection.decreasing
        return TrendDirection.stable


def _clamp_score(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def analyze_pattern(
    history: Sequence[PeriodRecord],
    lifestyle: LifestyleProfile | None = None,
    as_of_date: date | None = None,
    config: PredictionConfig | None = None,
) -> CyclePattern:
    """Module-level convenience wrapper around ``PatternAnalyzer.analyze``."""
    return PatternAnalyzer(config).analyze(history, lifestyle, as_of_date)
