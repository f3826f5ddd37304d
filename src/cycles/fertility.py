"""Baseline (non-adaptive) phase and fertility calculators.

These work directly off a ``CycleData`` snapshot using the calendar method:
ovulation is assumed ``luteal_phase_days`` (14) before the next period, and
the fertile window runs from 5 days before ovulation to 1 day after.

They do not look at history.  Callers who want adaptive numbers pass a
``CycleData`` whose ``cycle_length`` has already been replaced by the
predictor's estimate (see ``CycleTracker``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.dates import add_days, days_between, parse_date, round_days
from src.cycles.models import (
    CycleData,
    CyclePhase,
    FertilityWindow,
    PeriodRecord,
    PredictedCycle,
)

PREGNANCY_SYMPTOMS = (
    "nausea",
    "fatigue",
    "breastTenderness",
    "foodAversions",
    "frequentUrination",
    "moodSwings",
    "missedPeriod",
)


@dataclass(frozen=True)
class _CycleOffsets:
    """Day-of-cycle offsets (0 = first day of period) for one cycle length."""

    ovulation_day: int
    fertile_start: int
    fertile_end: int


def _offsets(cycle_length: int, config: PredictionConfig) -> _CycleOffsets:
    f = config.fertility
    ovulation_day = cycle_length - f.luteal_phase_days
    return _CycleOffsets(
        ovulation_day=ovulation_day,
        fertile_start=ovulation_day - f.days_before_ovulation,
        fertile_end=ovulation_day + f.days_after_ovulation,
    )


def classify_phase(
    day: date | str,
    cycle_data: CycleData,
    pregnancy_mode: bool = False,
    config: PredictionConfig | None = None,
) -> CyclePhase:
    """Classify a calendar day as period, fertile, ovulation or regular.

    The period check uses the raw offset from ``start_date``, so only the
    period beginning at ``start_date`` is recognised.  The fertile and
    ovulation checks use the offset's truncated remainder by ``cycle_length``
    and therefore repeat every cycle after the start; days before the start
    produce a negative remainder and are never fertile.

    Args:
        day:            Date to classify (date or ISO string).
        cycle_data:     Current cycle settings.
        pregnancy_mode: When True, phases are not tracked.

    Returns:
        CyclePhase.unknown in pregnancy mode or without a start date.
    """
    if pregnancy_mode or cycle_data.start_date is None:
        return CyclePhase.unknown

    cfg = config or get_prediction_config()
    offset = days_between(cycle_data.start_date, parse_date(day))

    if 0 <= offset < cycle_data.period_length:
        return CyclePhase.period

    o = _offsets(cycle_data.cycle_length, cfg)
    # math.fmod keeps the dividend's sign
    position = int(math.fmod(offset, cycle_data.cycle_length))
    if o.fertile_start <= position <= o.fertile_end:
        if position == o.ovulation_day:
            return CyclePhase.ovulation
        return CyclePhase.fertile

    return CyclePhase.regular


def compute_fertility_window(
    cycle_data: CycleData,
    today: date | None = None,
    config: PredictionConfig | None = None,
) -> FertilityWindow | None:
    """Fertility status for ``today`` in the cycle that began at ``start_date``.

    Returns:
        FertilityWindow, or None when no period start has been logged.
    """
    if cycle_data.start_date is None:
        return None

    f = (config or get_prediction_config()).fertility
    today = today or date.today()

    next_cycle_start = add_days(cycle_data.start_date, cycle_data.cycle_length)
    ovulation = add_days(next_cycle_start, -f.luteal_phase_days)
    fertile_start = add_days(ovulation, -f.days_before_ovulation)
    fertile_end = add_days(ovulation, f.days_after_ovulation)

    days_until_ovulation = days_between(today, ovulation)
    days_until_fertile = days_between(today, fertile_start)
    is_ovulation_day = today == ovulation
    in_window = fertile_start <= today <= fertile_end

    if is_ovulation_day:
        percentage = 100
    elif in_window:
        distance = abs(days_between(ovulation, today))
        percentage = max(0, 100 - distance * f.percentage_drop_per_day)
    else:
        percentage = 0

    return FertilityWindow(
        ovulation_date=ovulation,
        fertile_window_start=fertile_start,
        fertile_window_end=fertile_end,
        is_ovulation_day=is_ovulation_day,
        is_within_fertile_window=in_window,
        days_until_ovulation=days_until_ovulation if days_until_ovulation > 0 else None,
        days_until_fertile_window=days_until_fertile if days_until_fertile > 0 else None,
        fertility_percentage=percentage,
    )


def predict_future_cycles(
    cycle_data: CycleData,
    count: int = 3,
    pregnancy_mode: bool = False,
    config: PredictionConfig | None = None,
) -> list[PredictedCycle]:
    """Forecast ``count`` cycles after ``start_date`` at a fixed length.

    Every forecast cycle uses the same ``cycle_length``/``period_length``; the
    estimate is not re-adapted between cycles.  Ovulation for cycle *k* is
    ``luteal_phase_days`` before the start of cycle *k + 1*.
    """
    if cycle_data.start_date is None or pregnancy_mode:
        return []

    f = (config or get_prediction_config()).fertility
    predictions: list[PredictedCycle] = []
    last_start = cycle_data.start_date

    for i in range(count):
        period_start = add_days(last_start, cycle_data.cycle_length)
        ovulation = add_days(period_start, cycle_data.cycle_length - f.luteal_phase_days)
        predictions.append(
            PredictedCycle(
                period_start_date=period_start,
                period_end_date=add_days(period_start, cycle_data.period_length - 1),
                ovulation_date=ovulation,
                fertile_window_start=add_days(ovulation, -f.days_before_ovulation),
                fertile_window_end=add_days(ovulation, f.days_after_ovulation),
                cycle_number=i + 1,
            )
        )
        last_start = period_start

    return predictions


def days_until_next_period(
    start_date: date | None,
    cycle_length: int,
    pregnancy_mode: bool = False,
    today: date | None = None,
) -> int | None:
    """Naive countdown to ``start_date + cycle_length``.

    An overdue result wraps forward by one cycle length.  Returns None in
    pregnancy mode or without a start date.
    """
    if start_date is None or pregnancy_mode:
        return None
    today = today or date.today()
    days = days_between(today, add_days(start_date, cycle_length))
    return days if days >= 0 else cycle_length + days


def predict_cycle_length_from_history(
    history: Sequence[PeriodRecord],
    config: PredictionConfig | None = None,
) -> int:
    """Unweighted mean of plausible cycle gaps, rounded to whole days.

    The history is sorted first.  Falls back to the default cycle length with
    fewer than two records or no plausible gaps.
    """
    cfg = config or get_prediction_config()
    if len(history) < 2:
        return cfg.defaults.cycle_length

    ordered = sorted(history, key=lambda r: r.start_date)
    lengths = [
        days_between(prev.start_date, cur.start_date)
        for prev, cur in zip(ordered, ordered[1:])
    ]
    valid = [
        n for n in lengths
        if cfg.bounds.min_cycle_days <= n <= cfg.bounds.max_cycle_days
    ]
    if not valid:
        return cfg.defaults.cycle_length
    return round_days(sum(valid) / len(valid))


def calculate_pregnancy_probability(
    days_late: int,
    symptoms: Iterable[str],
    had_unprotected_sex: bool,
) -> int:
    """Rough 0–99 likelihood score for the pregnancy check screen.

    Not a diagnosis.  Late days add 5 each (capped at 50), each reported
    symptom matching a common early-pregnancy sign adds 5, and unprotected
    sex adds 10.
    """
    probability = 0
    if days_late > 0:
        probability += min(days_late * 5, 50)

    known = [s.lower() for s in PREGNANCY_SYMPTOMS]
    matching = [s for s in symptoms if any(k in s.lower() for k in known)]
    probability += len(matching) * 5

    if had_unprotected_sex:
        probability += 10

    return min(max(probability, 0), 99)
