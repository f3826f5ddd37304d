"""Stateful cycle tracker built on the pure engine.

``CycleTracker`` is the caller-owned state object: it holds the current
``CycleData``, the period history, the lifestyle profile and pregnancy mode,
and wires the analyzer, predictor and calendar calculators together:

- logging a new period start adds it to the history,
- every snapshot re-runs the adaptive predictor and adopts its cycle length
  once it drifts by the hysteresis threshold,
- forecasts and the fertility window use the adaptive cycle length when one
  is available, falling back to the stored settings otherwise.

One tracker per user; it holds no global state, so separate users never
share anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Sequence

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.dates import days_between
from src.cycles.fertility import (
    classify_phase,
    compute_fertility_window,
    days_until_next_period,
    predict_cycle_length_from_history,
    predict_future_cycles,
)
from src.cycles.insights import personalized_insights
from src.cycles.models import (
    AdaptivePrediction,
    CycleData,
    CyclePhase,
    FertilityWindow,
    LifestyleProfile,
    PeriodRecord,
    PredictedCycle,
)
from src.cycles.period_log import (
    add_period_to_history,
    apply_adaptive_prediction,
    log_period_day,
    normalize_history,
)
from src.cycles.predictor import AdaptivePredictor

logger = logging.getLogger("lunara.cycles.cycle_tracker")


@dataclass
class CycleSnapshot:
    """Everything a dashboard needs for one day.

    Attributes:
        as_of_date:             Reference date of the snapshot.
        cycle_data:             Stored cycle state after hysteresis.
        prediction:             Adaptive prediction, or None without a start
                                date or any history.
        phase:                  Phase of ``as_of_date``.
        days_until_next_period: Countdown (adaptive when available).
        future_cycles:          Forecast cycles at the effective length.
        fertility_window:       Fertility status for ``as_of_date``.
        insights:               Personalized insight strings.
    """

    as_of_date: date
    cycle_data: CycleData
    prediction: AdaptivePrediction | None = None
    phase: CyclePhase = CyclePhase.unknown
    days_until_next_period: int | None = None
    future_cycles: list[PredictedCycle] = field(default_factory=list)
    fertility_window: FertilityWindow | None = None
    insights: list[str] = field(default_factory=list)


class CycleTracker:
    """Hold one user's cycle state and derive predictions from it.

    Usage::

        tracker = CycleTracker(history=past_periods, lifestyle=profile)
        tracker.log_period_day(date(2026, 3, 2), is_active=True)
        snapshot = tracker.snapshot(as_of_date=date(2026, 3, 10))
        print(snapshot.prediction.next_period_date, snapshot.phase)
    """

    def __init__(
        self,
        cycle_data: CycleData | None = None,
        history: Sequence[PeriodRecord] = (),
        lifestyle: LifestyleProfile | None = None,
        pregnancy_mode: bool = False,
        config: PredictionConfig | None = None,
    ) -> None:
        self._config = config or get_prediction_config()
        self._predictor = AdaptivePredictor(self._config)
        self._cycle_data = cycle_data or CycleData(
            cycle_length=self._config.defaults.cycle_length,
            period_length=self._config.defaults.period_length,
        )
        self._history = normalize_history(history)
        self.lifestyle = lifestyle
        self.pregnancy_mode = pregnancy_mode

    @property
    def cycle_data(self) -> CycleData:
        return self._cycle_data

    @property
    def history(self) -> list[PeriodRecord]:
        return list(self._history)

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def log_period_day(self, day: date | str, is_active: bool) -> CycleData:
        """Mark or unmark a period day; a new period start joins the history."""
        previous = self._cycle_data
        self._cycle_data = log_period_day(day, is_active, previous)

        updated = self._cycle_data
        if is_active and updated.start_date and updated.start_date != previous.start_date:
            self.add_period(updated.start_date, updated.end_date)
        return self._cycle_data

    def add_period(self, start_date: date | str, end_date: date | str | None = None) -> None:
        """Record a period in the history and re-check the stored cycle length.

        The simple history average replaces the stored cycle length once the
        two differ by the hysteresis threshold.
        """
        before = len(self._history)
        self._history = add_period_to_history(self._history, start_date, end_date)
        if len(self._history) == before:
            return

        if len(self._history) >= 2:
            averaged = predict_cycle_length_from_history(self._history, self._config)
            threshold = self._config.tracking.hysteresis_days
            if abs(averaged - self._cycle_data.cycle_length) >= threshold:
                logger.info(
                    "History average %d days replaces stored cycle length %d",
                    averaged, self._cycle_data.cycle_length,
                )
                self._cycle_data = replace(self._cycle_data, cycle_length=averaged)

    def set_pregnancy_mode(self, enabled: bool) -> None:
        self.pregnancy_mode = enabled

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def refresh(self, as_of_date: date | None = None) -> AdaptivePrediction | None:
        """Re-run the adaptive predictor and apply hysteresis to stored lengths."""
        if self._cycle_data.start_date is None or not self._history:
            return None
        prediction = self._predictor.predict(
            self._cycle_data.start_date,
            self._history,
            self.lifestyle,
            as_of_date=as_of_date,
        )
        self._cycle_data = apply_adaptive_prediction(
            self._cycle_data, prediction, self._config.tracking.hysteresis_days
        )
        return prediction

    def snapshot(self, as_of_date: date | None = None) -> CycleSnapshot:
        """Compute the full dashboard view for ``as_of_date`` (default: today)."""
        today = as_of_date or date.today()
        prediction = self.refresh(today)
        cycle_data = self._cycle_data

        snapshot = CycleSnapshot(
            as_of_date=today,
            cycle_data=cycle_data,
            prediction=prediction,
            phase=classify_phase(today, cycle_data, self.pregnancy_mode, self._config),
        )

        if prediction is not None and not self.pregnancy_mode:
            snapshot.days_until_next_period = max(
                days_between(today, prediction.next_period_date), 0
            )
        else:
            snapshot.days_until_next_period = days_until_next_period(
                cycle_data.start_date, cycle_data.cycle_length, self.pregnancy_mode, today
            )

        if cycle_data.start_date is not None and not self.pregnancy_mode:
            effective = cycle_data
            if prediction is not None:
                effective = replace(cycle_data, cycle_length=prediction.cycle_length_prediction)
            snapshot.future_cycles = predict_future_cycles(
                effective,
                self._config.tracking.future_cycles,
                self.pregnancy_mode,
                self._config,
            )
            snapshot.fertility_window = compute_fertility_window(effective, today, self._config)

        if prediction is not None:
            snapshot.insights = personalized_insights(prediction.pattern, self.lifestyle)

        return snapshot
