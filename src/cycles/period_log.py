"""Pure state transitions over ``CycleData`` and ``PeriodHistory``.

Each function returns a new value and leaves its arguments untouched; the
caller owns the state and decides where to store it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, Sequence

from src.cycles.dates import add_days, parse_date
from src.cycles.models import AdaptivePrediction, CycleData, CycleDay, CyclePhase, PeriodRecord

logger = logging.getLogger("lunara.cycles.period_log")


def _period_bounds(logs: Sequence[CycleDay]) -> tuple[date | None, date | None]:
    period_days = [log.day for log in logs if log.phase is CyclePhase.period]
    if not period_days:
        return None, None
    return min(period_days), max(period_days)


def log_period_day(day: date | str, is_active: bool, cycle_data: CycleData) -> CycleData:
    """Mark (``is_active=True``) or unmark a period day.

    Logs stay sorted by date and ``start_date``/``end_date`` are re-derived as
    the first and last ``period`` days.  Re-adding an existing day or removing
    a missing one returns ``cycle_data`` unchanged.
    """
    target = parse_date(day)
    exists = any(log.day == target for log in cycle_data.logs)

    if is_active:
        if exists:
            return cycle_data
        logs = tuple(sorted(
            (*cycle_data.logs, CycleDay(day=target, phase=CyclePhase.period)),
            key=lambda log: log.day,
        ))
    else:
        if not exists:
            return cycle_data
        logs = tuple(log for log in cycle_data.logs if log.day != target)

    start, end = _period_bounds(logs)
    return replace(cycle_data, logs=logs, start_date=start, end_date=end)


def predict_period_end_date(start_date: date | str | None, period_length: int) -> date | None:
    """Last day of a period that starts on ``start_date`` (start counts as day 1)."""
    if start_date is None:
        return None
    return add_days(parse_date(start_date), period_length - 1)


def log_predicted_period_days(
    start_date: date | str, period_length: int, cycle_data: CycleData
) -> CycleData:
    """Fill in ``period_length`` period days from ``start_date``.

    Days that are already logged keep their existing entry.  ``start_date`` and
    ``end_date`` are set to the span of the filled-in period.
    """
    start = parse_date(start_date)
    logged = {log.day for log in cycle_data.logs}
    new_days = [
        CycleDay(day=d, phase=CyclePhase.period)
        for d in (add_days(start, i) for i in range(period_length))
        if d not in logged
    ]
    logs = tuple(sorted((*cycle_data.logs, *new_days), key=lambda log: log.day))
    return replace(
        cycle_data,
        logs=logs,
        start_date=start,
        end_date=predict_period_end_date(start, period_length),
    )


def normalize_history(records: Iterable[PeriodRecord]) -> list[PeriodRecord]:
    """Sort by start date and drop repeated start dates (first one wins)."""
    seen: set[date] = set()
    unique: list[PeriodRecord] = []
    for record in records:
        if record.start_date in seen:
            continue
        seen.add(record.start_date)
        unique.append(record)
    return sorted(unique, key=lambda r: r.start_date)


def add_period_to_history(
    history: Sequence[PeriodRecord],
    start_date: date | str,
    end_date: date | str | None = None,
) -> list[PeriodRecord]:
    """Return ``history`` plus a new period, sorted by start date.

    A period whose start date is already recorded is ignored.
    """
    start = parse_date(start_date)
    if any(r.start_date == start for r in history):
        logger.debug("Period starting %s already in history", start)
        return list(history)
    record = PeriodRecord(
        start_date=start,
        end_date=parse_date(end_date) if end_date else None,
    )
    return sorted((*history, record), key=lambda r: r.start_date)


def apply_adaptive_prediction(
    cycle_data: CycleData,
    prediction: AdaptivePrediction,
    threshold_days: int = 2,
) -> CycleData:
    """Adopt the predicted cycle and period length when they have drifted.

    Stored lengths are replaced only when the predicted cycle length differs
    from the stored one by at least ``threshold_days``, so small wobbles in
    the estimate do not churn the saved settings.
    """
    drift = abs(prediction.cycle_length_prediction - cycle_data.cycle_length)
    if drift < threshold_days:
        return cycle_data
    logger.info(
        "Cycle length drifted %d days (%d → %d); updating stored lengths",
        drift,
        cycle_data.cycle_length,
        prediction.cycle_length_prediction,
    )
    return replace(
        cycle_data,
        cycle_length=prediction.cycle_length_prediction,
        period_length=prediction.period_length_prediction,
    )
