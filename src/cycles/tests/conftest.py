"""Shared fixtures for the cycle prediction engine test suite."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from src.cycles.config_loader import PredictionConfig, load_prediction_config
from src.cycles.models import CycleData, LifestyleProfile, PeriodRecord

# Fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Four days after the last period in ``regular_history`` started
TEST_DATE = date(2025, 11, 20)


def make_history(starts: list[str], period_days: int | None = 5) -> list[PeriodRecord]:
    """Build a sorted history from ISO start dates with a fixed period length."""
    records = []
    for start in starts:
        start_date = date.fromisoformat(start)
        end_date = None
        if period_days is not None:
            end_date = date.fromordinal(start_date.toordinal() + period_days - 1)
        records.append(PeriodRecord(start_date=start_date, end_date=end_date))
    return records


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def prediction_config() -> PredictionConfig:
    """Load the real prediction config for tests."""
    return load_prediction_config()


# ---------------------------------------------------------------------------
# JSON fixture loaders
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_data_raw() -> dict:
    return json.loads((FIXTURES_DIR / "cycle_data.json").read_text())


@pytest.fixture
def regular_history(cycle_data_raw: dict) -> list[PeriodRecord]:
    """Seven periods exactly 28 days apart, each lasting 5 days."""
    return [PeriodRecord.from_dict(r) for r in cycle_data_raw["regular_history"]]


@pytest.fixture
def lengthening_history(cycle_data_raw: dict) -> list[PeriodRecord]:
    """Cycle lengths 26, 28, 30, 32 with no end dates logged."""
    return [PeriodRecord.from_dict(r) for r in cycle_data_raw["lengthening_history"]]


@pytest.fixture
def shortening_history(cycle_data_raw: dict) -> list[PeriodRecord]:
    """Cycle lengths 32, 30, 28, 26 with no end dates logged."""
    return [PeriodRecord.from_dict(r) for r in cycle_data_raw["shortening_history"]]


@pytest.fixture
def stable_lifestyle(cycle_data_raw: dict) -> LifestyleProfile:
    return LifestyleProfile.from_dict(cycle_data_raw["stable_lifestyle"])


@pytest.fixture
def strained_lifestyle(cycle_data_raw: dict) -> LifestyleProfile:
    return LifestyleProfile.from_dict(cycle_data_raw["strained_lifestyle"])


# ---------------------------------------------------------------------------
# Cycle data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def january_cycle() -> CycleData:
    """A 28-day cycle with a 5-day period starting 2024-01-01."""
    return CycleData(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 5),
        cycle_length=28,
        period_length=5,
    )
