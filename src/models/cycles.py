"""Pydantic request/response schemas for the cycle prediction API.

Requests convert into the engine's frozen dataclasses via ``to_*`` helpers;
responses are read straight off engine outputs with ``from_attributes``.
"""

from __future__ import annotations

from datetime import date

from pydantic import Field

from src.cycles.models import (
    ConfidenceLevel,
    ContraceptiveType,
    CycleData,
    CycleDay,
    CyclePhase,
    DietType,
    ExerciseFrequency,
    LifestyleProfile,
    PeriodRecord,
    SleepQuality,
    SmokingStatus,
    StressLevel,
    TravelFrequency,
    TrendDirection,
    WeightChanges,
    WorkSchedule,
)
from src.cycles.period_log import normalize_history
from src.cycles.symptoms import SymptomLog
from src.models.base import LunaraBase, LunaraRequest


# ---------- Inputs ----------

class PeriodRecordIn(LunaraRequest):
    start_date: date
    end_date: date | None = None

    def to_record(self) -> PeriodRecord:
        return PeriodRecord(start_date=self.start_date, end_date=self.end_date)


class LifestyleProfileIn(LunaraRequest):
    age: int | None = Field(default=None, ge=10, le=65)
    stress_level: StressLevel | None = None
    exercise_frequency: ExerciseFrequency | None = None
    sleep_quality: SleepQuality | None = None
    work_schedule: WorkSchedule | None = None
    health_conditions: list[str] = Field(default_factory=list)
    diet_type: DietType | None = None
    contraceptive_type: ContraceptiveType | None = None
    smoking_status: SmokingStatus | None = None
    weight_changes: WeightChanges | None = None
    travel_frequency: TravelFrequency | None = None
    medications: str | None = None
    notes: str | None = None

    def to_profile(self) -> LifestyleProfile:
        return LifestyleProfile.from_dict(self.model_dump(exclude_none=True))


class CycleDayIn(LunaraRequest):
    day: date
    phase: CyclePhase = CyclePhase.period


class CycleDataIn(LunaraRequest):
    start_date: date | None = None
    end_date: date | None = None
    cycle_length: int = Field(default=28, ge=1, le=120)
    period_length: int = Field(default=5, ge=1, le=30)
    logs: list[CycleDayIn] = Field(default_factory=list)

    def to_cycle_data(self) -> CycleData:
        return CycleData(
            start_date=self.start_date,
            end_date=self.end_date,
            cycle_length=self.cycle_length,
            period_length=self.period_length,
            logs=tuple(
                CycleDay(day=log.day, phase=log.phase)
                for log in sorted(self.logs, key=lambda log: log.day)
            ),
        )


class HistoryRequest(LunaraRequest):
    """Shared body: period history, optional lifestyle and reference date."""

    history: list[PeriodRecordIn] = Field(default_factory=list)
    lifestyle: LifestyleProfileIn | None = None
    as_of_date: date | None = None

    def to_history(self) -> list[PeriodRecord]:
        return normalize_history(r.to_record() for r in self.history)

    def to_lifestyle(self) -> LifestyleProfile | None:
        return self.lifestyle.to_profile() if self.lifestyle else None


class PatternRequest(HistoryRequest):
    pass


class PredictRequest(HistoryRequest):
    last_period_start: date


class InsightsRequest(HistoryRequest):
    pass


class PhaseRequest(LunaraRequest):
    day: date
    cycle_data: CycleDataIn
    pregnancy_mode: bool = False


class FertilityWindowRequest(LunaraRequest):
    cycle_data: CycleDataIn
    today: date | None = None


class FutureCyclesRequest(LunaraRequest):
    cycle_data: CycleDataIn
    count: int = Field(default=3, ge=0, le=24)
    pregnancy_mode: bool = False


class SnapshotRequest(HistoryRequest):
    cycle_data: CycleDataIn = Field(default_factory=CycleDataIn)
    pregnancy_mode: bool = False


class SymptomLogIn(LunaraRequest):
    day: date
    symptom_id: str = Field(min_length=1)
    intensity: int | None = Field(default=None, ge=1, le=12)
    notes: str | None = None

    def to_log(self) -> SymptomLog:
        return SymptomLog(
            date=self.day,
            symptom_id=self.symptom_id,
            intensity=self.intensity,
            notes=self.notes,
        )


class SymptomInsightsRequest(LunaraRequest):
    logs: list[SymptomLogIn] = Field(default_factory=list)


class PregnancyCheckRequest(LunaraRequest):
    days_late: int = Field(default=0, ge=0)
    symptoms: list[str] = Field(default_factory=list)
    had_unprotected_sex: bool = False


# ---------- Outputs ----------

class CyclePatternRead(LunaraBase):
    average_cycle_length: int
    average_period_length: int
    cycle_variability: float
    period_variability: float
    confidence: float
    data_quality: float
    trend_direction: TrendDirection
    cycles_analyzed: int


class PredictionRangeRead(LunaraBase):
    earliest: date
    latest: date


class AdaptivePredictionRead(LunaraBase):
    next_period_date: date
    confidence: float
    confidence_level: ConfidenceLevel
    cycle_length_prediction: int
    period_length_prediction: int
    prediction_range: PredictionRangeRead
    pattern: CyclePatternRead


class PhaseRead(LunaraBase):
    day: date
    phase: CyclePhase


class FertilityWindowRead(LunaraBase):
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    is_ovulation_day: bool
    is_within_fertile_window: bool
    days_until_ovulation: int | None = None
    days_until_fertile_window: int | None = None
    fertility_percentage: int


class PredictedCycleRead(LunaraBase):
    period_start_date: date
    period_end_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    cycle_number: int


class InsightsRead(LunaraBase):
    pattern: CyclePatternRead
    insights: list[str]


class CycleDayRead(LunaraBase):
    day: date
    phase: CyclePhase


class CycleDataRead(LunaraBase):
    start_date: date | None = None
    end_date: date | None = None
    cycle_length: int
    period_length: int
    logs: list[CycleDayRead] = Field(default_factory=list)


class SnapshotRead(LunaraBase):
    as_of_date: date
    cycle_data: CycleDataRead
    prediction: AdaptivePredictionRead | None = None
    phase: CyclePhase
    days_until_next_period: int | None = None
    future_cycles: list[PredictedCycleRead] = Field(default_factory=list)
    fertility_window: FertilityWindowRead | None = None
    insights: list[str] = Field(default_factory=list)


class SymptomInsightsRead(LunaraBase):
    insights: list[str]


class PregnancyCheckRead(LunaraBase):
    probability: int
