"""Domain types for the adaptive cycle engine.

Engine inputs (``PeriodRecord``, ``LifestyleProfile``, ``CycleData``) are
frozen so that callers can hand the same objects to the engine repeatedly
without coordination.  Derived outputs are recomputed on every call and never
persisted by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping

from src.cycles.dates import format_date, parse_date


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CyclePhase(str, Enum):
    period = "period"
    fertile = "fertile"
    ovulation = "ovulation"
    regular = "regular"
    unknown = "unknown"


class TrendDirection(str, Enum):
    stable = "stable"
    increasing = "increasing"
    decreasing = "decreasing"


class ConfidenceLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class StressLevel(str, Enum):
    low = "low"
    moderate = "moderate"
    high = "high"


class ExerciseFrequency(str, Enum):
    none = "none"
    light = "light"
    moderate = "moderate"
    intense = "intense"


class SleepQuality(str, Enum):
    poor = "poor"
    fair = "fair"
    good = "good"
    excellent = "excellent"


class WorkSchedule(str, Enum):
    regular = "regular"
    shift = "shift"
    irregular = "irregular"


class DietType(str, Enum):
    standard = "standard"
    vegetarian = "vegetarian"
    vegan = "vegan"
    keto = "keto"
    other = "other"


class ContraceptiveType(str, Enum):
    none = "none"
    pill = "pill"
    iud = "iud"
    implant = "implant"
    patch = "patch"
    ring = "ring"
    other = "other"


class SmokingStatus(str, Enum):
    never = "never"
    former = "former"
    current = "current"


class WeightChanges(str, Enum):
    stable = "stable"
    gaining = "gaining"
    losing = "losing"
    fluctuating = "fluctuating"


class TravelFrequency(str, Enum):
    rare = "rare"
    occasional = "occasional"
    frequent = "frequent"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodRecord:
    """One observed menstruation.

    Attributes:
        start_date: First day of bleeding.
        end_date:   Last day of bleeding, or None if not logged.
    """

    start_date: date
    end_date: date | None = None

    @property
    def is_complete(self) -> bool:
        return self.end_date is not None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PeriodRecord:
        """Build from ``{"start_date": "YYYY-MM-DD", "end_date": ... | None}``.

        Raises:
            KeyError:   If ``start_date`` is missing.
            ValueError: If either date is malformed.
        """
        end = raw.get("end_date")
        return cls(
            start_date=parse_date(raw["start_date"]),
            end_date=parse_date(end) if end else None,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "start_date": format_date(self.start_date),
            "end_date": format_date(self.end_date) if self.end_date else None,
        }


class LifestyleValidationError(ValueError):
    """Raised when a lifestyle payload has unknown keys or invalid values."""


_LIFESTYLE_ENUMS: dict[str, type[Enum]] = {
    "stress_level": StressLevel,
    "exercise_frequency": ExerciseFrequency,
    "sleep_quality": SleepQuality,
    "work_schedule": WorkSchedule,
    "diet_type": DietType,
    "contraceptive_type": ContraceptiveType,
    "smoking_status": SmokingStatus,
    "weight_changes": WeightChanges,
    "travel_frequency": TravelFrequency,
}


@dataclass(frozen=True)
class LifestyleProfile:
    """Self-reported lifestyle snapshot.  Every field is optional.

    Read-only input to the analyzer and predictor; the engine never mutates it.
    """

    age: int | None = None
    stress_level: StressLevel | None = None
    exercise_frequency: ExerciseFrequency | None = None
    sleep_quality: SleepQuality | None = None
    work_schedule: WorkSchedule | None = None
    health_conditions: frozenset[str] = frozenset()
    diet_type: DietType | None = None
    contraceptive_type: ContraceptiveType | None = None
    smoking_status: SmokingStatus | None = None
    weight_changes: WeightChanges | None = None
    travel_frequency: TravelFrequency | None = None
    medications: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> LifestyleProfile:
        """Validate a loosely-typed lifestyle mapping.

        Unknown keys and out-of-vocabulary values are rejected rather than
        ignored.  All problems are reported together.

        Raises:
            LifestyleValidationError: On any unknown key or invalid value.
        """
        known = {f.name for f in fields(cls)}
        errors: list[str] = []
        values: dict[str, Any] = {}

        for key, value in raw.items():
            if key not in known:
                errors.append(f"unknown lifestyle field '{key}'")
                continue
            if value is None:
                continue
            if key in _LIFESTYLE_ENUMS:
                enum_cls = _LIFESTYLE_ENUMS[key]
                try:
                    values[key] = enum_cls(value)
                except ValueError:
                    allowed = ", ".join(m.value for m in enum_cls)
                    errors.append(f"{key}={value!r} is not one of: {allowed}")
            elif key == "age":
                if isinstance(value, bool) or not isinstance(value, int):
                    errors.append(f"age must be an integer, got {value!r}")
                elif not 10 <= value <= 65:
                    errors.append(f"age={value} is outside 10–65")
                else:
                    values[key] = value
            elif key == "health_conditions":
                if isinstance(value, str) or not isinstance(value, Iterable):
                    errors.append("health_conditions must be a list of strings")
                else:
                    values[key] = frozenset(str(c) for c in value)
            else:
                values[key] = str(value)

        if errors:
            raise LifestyleValidationError("; ".join(errors))
        return cls(**values)

    def has_condition(self, keyword: str) -> bool:
        """Case-insensitive substring match against reported conditions."""
        needle = keyword.lower()
        return any(needle in c.lower() for c in self.health_conditions)


@dataclass(frozen=True)
class CycleDay:
    """A single logged day and the phase recorded for it."""

    day: date
    phase: CyclePhase = CyclePhase.period


@dataclass(frozen=True)
class CycleData:
    """The authoritative current-cycle state.

    ``start_date``/``end_date`` are re-derived from ``logs`` whenever a day is
    added or removed.  ``cycle_length``/``period_length`` are replaced by the
    tracker only when an adaptive prediction diverges by the hysteresis
    threshold.
    """

    start_date: date | None = None
    end_date: date | None = None
    cycle_length: int = 28
    period_length: int = 5
    logs: tuple[CycleDay, ...] = ()


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CyclePattern:
    """Weighted statistics over a period history.

    Attributes:
        average_cycle_length:  Weighted mean cycle length (whole days).
        average_period_length: Weighted mean period length (whole days).
        cycle_variability:     Weighted std dev of cycle length (1 decimal).
        period_variability:    Weighted std dev of period length (1 decimal).
        confidence:            0–100 composite score incl. lifestyle bonus.
        data_quality:          0–100 composite score without lifestyle bonus.
        trend_direction:       Direction of recent cycle lengths.
        cycles_analyzed:       Number of valid cycle-length samples used.
    """

    average_cycle_length: int
    average_period_length: int
    cycle_variability: float
    period_variability: float
    confidence: float
    data_quality: float
    trend_direction: TrendDirection = TrendDirection.stable
    cycles_analyzed: int = 0


@dataclass(frozen=True)
class PredictionRange:
    earliest: date
    latest: date


@dataclass(frozen=True)
class AdaptivePrediction:
    """Next-period estimate with an uncertainty range."""

    next_period_date: date
    confidence: float
    confidence_level: ConfidenceLevel
    cycle_length_prediction: int
    period_length_prediction: int
    prediction_range: PredictionRange
    pattern: CyclePattern


@dataclass(frozen=True)
class FertilityWindow:
    """Fertility status for "today" relative to the current cycle."""

    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    is_ovulation_day: bool
    is_within_fertile_window: bool
    days_until_ovulation: int | None
    days_until_fertile_window: int | None
    fertility_percentage: int


@dataclass(frozen=True)
class PredictedCycle:
    """One forecast cycle; ``cycle_number`` is 1 for the next cycle."""

    period_start_date: date
    period_end_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    cycle_number: int


@dataclass
class CycleAnalysis:
    """Irregularity screening over the current cycle settings."""

    is_regular: bool = True
    average_cycle_length: int | None = None
    cycle_length_variation: int | None = None
    short_cycle_count: int = 0
    long_cycle_count: int = 0
    irregular_patterns: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
