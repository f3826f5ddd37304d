"""Tests for recency-weighted cycle pattern analysis."""

from __future__ import annotations

import math
from datetime import date

import pytest

from src.cycles.config_loader import PredictionConfig, _validate_and_build
from src.cycles.models import LifestyleProfile, PeriodRecord, TrendDirection
from src.cycles.pattern_analyzer import (
    PatternAnalyzer,
    WeightedSample,
    analyze_pattern,
    ols_slope,
    weighted_mean,
    weighted_std,
)
from src.cycles.tests.conftest import TEST_DATE, make_history


# ---------------------------------------------------------------------------
# Statistics helpers
# ---------------------------------------------------------------------------


class TestStatistics:
    def test_weighted_mean_equal_weights(self) -> None:
        samples = [WeightedSample(26, 1.0), WeightedSample(30, 1.0)]
        assert weighted_mean(samples) == 28.0

    def test_weighted_mean_favours_heavier_sample(self) -> None:
        samples = [WeightedSample(26, 0.5), WeightedSample(30, 1.0)]
        assert weighted_mean(samples) > 28.0

    def test_weighted_mean_empty_is_none(self) -> None:
        assert weighted_mean([]) is None

    def test_weighted_std_single_sample_is_zero(self) -> None:
        assert weighted_std([WeightedSample(28, 1.0)], 28.0) == 0.0

    def test_weighted_std_is_population_std(self) -> None:
        samples = [WeightedSample(26, 1.0), WeightedSample(30, 1.0)]
        assert weighted_std(samples, 28.0) == pytest.approx(2.0)

    def test_ols_slope(self) -> None:
        assert ols_slope([26, 28, 30, 32]) == pytest.approx(2.0)
        assert ols_slope([28, 28, 28]) == pytest.approx(0.0)
        assert ols_slope([30]) == 0.0


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class TestPatternAnalyzer:
    def test_three_regular_cycles(self, prediction_config: PredictionConfig) -> None:
        """Three 28-day-apart periods of 5 days give a clean 28/5 pattern."""
        history = make_history(["2024-01-01", "2024-01-29", "2024-02-26"])
        pattern = PatternAnalyzer(prediction_config).analyze(
            history, as_of_date=date(2024, 3, 1)
        )
        assert pattern.average_cycle_length == 28
        assert pattern.average_period_length == 5
        assert pattern.cycle_variability == 0.0
        assert pattern.period_variability == 0.0
        assert pattern.trend_direction is TrendDirection.stable
        assert pattern.cycles_analyzed == 2
        # quantity 15 + consistency 25 + recency 15 + completeness 10
        assert pattern.confidence == pytest.approx(65.0)
        assert pattern.data_quality == pytest.approx(65.0)

    def test_empty_history_returns_default(self, prediction_config: PredictionConfig) -> None:
        pattern = PatternAnalyzer(prediction_config).analyze([])
        assert pattern.average_cycle_length == 28
        assert pattern.average_period_length == 5
        assert pattern.confidence == 10
        assert pattern.data_quality == 0.0
        assert pattern.trend_direction is TrendDirection.stable

    def test_single_record_returns_default(self, prediction_config: PredictionConfig) -> None:
        analyzer = PatternAnalyzer(prediction_config)
        history = make_history(["2024-01-01"])
        assert analyzer.analyze(history) == analyzer.default_pattern()

    def test_no_plausible_gaps_returns_default(
        self, prediction_config: PredictionConfig
    ) -> None:
        """A 74-day gap is dropped as noise, leaving nothing to analyze."""
        analyzer = PatternAnalyzer(prediction_config)
        history = make_history(["2024-01-01", "2024-03-15"])
        assert analyzer.analyze(history) == analyzer.default_pattern()

    def test_implausible_gap_dropped(self, prediction_config: PredictionConfig) -> None:
        # Gaps of 28, 10 and 18 days; the last two are below the 21-day floor
        history = make_history(["2024-01-01", "2024-01-29", "2024-02-08", "2024-02-26"])
        pattern = PatternAnalyzer(prediction_config).analyze(
            history, as_of_date=date(2024, 3, 1)
        )
        assert pattern.cycles_analyzed == 1
        assert pattern.average_cycle_length == 28

    def test_missing_end_dates_fall_back_to_default_period(
        self, prediction_config: PredictionConfig
    ) -> None:
        history = make_history(["2024-01-01", "2024-01-31", "2024-03-01"], period_days=None)
        pattern = PatternAnalyzer(prediction_config).analyze(
            history, as_of_date=date(2024, 3, 5)
        )
        assert pattern.average_cycle_length == 30
        assert pattern.average_period_length == 5
        assert pattern.period_variability == 0.0

    def test_recent_cycles_weigh_more(self, prediction_config: PredictionConfig) -> None:
        """Three 30-day cycles followed by one 24-day cycle pull the mean below 28.5."""
        history = make_history(["2024-01-01", "2024-01-31", "2024-03-01", "2024-03-31", "2024-04-24"])
        pattern = PatternAnalyzer(prediction_config).analyze(history, as_of_date=date(2024, 5, 1))
        assert pattern.average_cycle_length == 28
        assert pattern.cycle_variability > 0

    def test_regular_history_is_high_confidence(
        self, prediction_config: PredictionConfig, regular_history: list[PeriodRecord]
    ) -> None:
        pattern = PatternAnalyzer(prediction_config).analyze(regular_history, as_of_date=TEST_DATE)
        assert pattern.cycles_analyzed == 6
        # quantity 35 + consistency 25 + recency 15 + completeness 10
        assert pattern.confidence == pytest.approx(85.0)

    def test_stale_history_loses_recency_points(
        self, prediction_config: PredictionConfig, regular_history: list[PeriodRecord]
    ) -> None:
        analyzer = PatternAnalyzer(prediction_config)
        fresh = analyzer.analyze(regular_history, as_of_date=TEST_DATE)
        stale = analyzer.analyze(regular_history, as_of_date=date(2026, 3, 1))
        assert fresh.confidence - stale.confidence == pytest.approx(15.0)

    def test_lengthening_trend(
        self, prediction_config: PredictionConfig, lengthening_history: list[PeriodRecord]
    ) -> None:
        pattern = PatternAnalyzer(prediction_config).analyze(lengthening_history)
        assert pattern.trend_direction is TrendDirection.increasing
        assert pattern.average_cycle_length == 29
        assert pattern.cycle_variability == 2.2

    def test_shortening_trend(
        self, prediction_config: PredictionConfig, shortening_history: list[PeriodRecord]
    ) -> None:
        pattern = PatternAnalyzer(prediction_config).analyze(shortening_history)
        assert pattern.trend_direction is TrendDirection.decreasing

    def test_two_samples_never_trend(self, prediction_config: PredictionConfig) -> None:
        history = make_history(["2024-01-01", "2024-01-25", "2024-02-27"])
        pattern = PatternAnalyzer(prediction_config).analyze(history)
        assert pattern.trend_direction is TrendDirection.stable

    def test_analysis_is_idempotent(
        self, prediction_config: PredictionConfig, regular_history: list[PeriodRecord]
    ) -> None:
        analyzer = PatternAnalyzer(prediction_config)
        snapshot = list(regular_history)
        first = analyzer.analyze(regular_history, as_of_date=TEST_DATE)
        second = analyzer.analyze(regular_history, as_of_date=TEST_DATE)
        assert first == second
        assert regular_history == snapshot

    def test_scores_are_bounded(
        self, prediction_config: PredictionConfig, regular_history: list[PeriodRecord]
    ) -> None:
        pattern = PatternAnalyzer(prediction_config).analyze(regular_history, as_of_date=TEST_DATE)
        assert 0 <= pattern.confidence <= 100
        assert 0 <= pattern.data_quality <= 100

    def test_module_level_wrapper(
        self, prediction_config: PredictionConfig, regular_history: list[PeriodRecord]
    ) -> None:
        expected = PatternAnalyzer(prediction_config).analyze(regular_history, as_of_date=TEST_DATE)
        assert analyze_pattern(regular_history, None, TEST_DATE, prediction_config) == expected

    def test_trend_reads_only_recent_window(self, prediction_config: PredictionConfig) -> None:
        """Gaps 40, 36, 32, 28, 30, 32 fall overall but the last four are flat."""
        history = make_history([
            "2024-01-01", "2024-02-10", "2024-03-17", "2024-04-18",
            "2024-05-16", "2024-06-15", "2024-07-17",
        ])
        pattern = PatternAnalyzer(prediction_config).analyze(
            history, as_of_date=date(2024, 7, 20)
        )
        assert pattern.cycles_analyzed == 6
        assert ols_slope([40, 36, 32, 28, 30, 32]) < -prediction_config.trend.slope_threshold
        assert pattern.trend_direction is TrendDirection.stable

    def test_steep_lengthening_variability(self, prediction_config: PredictionConfig) -> None:
        # Gaps 22, 26, 34, 44
        history = make_history(["2024-01-01", "2024-01-23", "2024-02-18", "2024-03-23", "2024-05-06"])
        pattern = PatternAnalyzer(prediction_config).analyze(
            history, as_of_date=date(2024, 5, 10)
        )
        assert pattern.trend_direction is TrendDirection.increasing
        assert pattern.average_cycle_length == 32
        assert pattern.cycle_variability == 8.5


# ---------------------------------------------------------------------------
# Confidence score bands
# ---------------------------------------------------------------------------


class TestScoreBands:
    @pytest.mark.parametrize(
        "sample_count, expected",
        [(0, 5.0), (1, 5.0), (2, 15.0), (3, 15.0), (4, 25.0), (5, 25.0), (6, 35.0)],
    )
    def test_quantity(self, sample_count: int, expected: float) -> None:
        assert PatternAnalyzer._quantity_score(sample_count) == expected

    @pytest.mark.parametrize(
        "variability, expected",
        [(0.0, 25.0), (1.5, 25.0), (1.6, 15.0), (3.0, 15.0), (3.1, 8.0), (5.0, 8.0), (5.1, 0.0)],
    )
    def test_consistency(self, variability: float, expected: float) -> None:
        assert PatternAnalyzer._consistency_score(variability) == expected

    @pytest.mark.parametrize(
        "days_since_last, expected",
        [(0, 15.0), (35, 15.0), (36, 8.0), (60, 8.0), (61, 0.0)],
    )
    def test_recency(self, days_since_last: int, expected: float) -> None:
        assert PatternAnalyzer._recency_score(days_since_last) == expected

    @pytest.mark.parametrize(
        "as_of_date, expected",
        [
            (date(2024, 4, 1), 65.0),
            (date(2024, 4, 2), 58.0),
            (date(2024, 4, 26), 58.0),
            (date(2024, 4, 27), 50.0),
        ],
    )
    def test_recency_edges_through_analyze(
        self, prediction_config: PredictionConfig, as_of_date: date, expected: float
    ) -> None:
        """Last period starts 2024-02-26, so the edges fall 35, 36, 60 and 61 days later."""
        history = make_history(["2024-01-01", "2024-01-29", "2024-02-26"])
        pattern = PatternAnalyzer(prediction_config).analyze(history, as_of_date=as_of_date)
        assert pattern.confidence == pytest.approx(expected)


class TestLifestyleBonus:
    def test_stable_lifestyle_earns_capped_bonus(
        self, prediction_config: PredictionConfig, stable_lifestyle: LifestyleProfile
    ) -> None:
        bonus = PatternAnalyzer(prediction_config).lifestyle_bonus(stable_lifestyle)
        assert bonus == pytest.approx(15.0)

    def test_strained_lifestyle_earns_nothing(
        self, prediction_config: PredictionConfig, strained_lifestyle: LifestyleProfile
    ) -> None:
        assert PatternAnalyzer(prediction_config).lifestyle_bonus(strained_lifestyle) == 0.0

    def test_bonus_raises_confidence_not_data_quality(
        self,
        prediction_config: PredictionConfig,
        regular_history: list[PeriodRecord],
        stable_lifestyle: LifestyleProfile,
    ) -> None:
        analyzer = PatternAnalyzer(prediction_config)
        plain = analyzer.analyze(regular_history, as_of_date=TEST_DATE)
        boosted = analyzer.analyze(regular_history, stable_lifestyle, as_of_date=TEST_DATE)
        assert boosted.confidence == pytest.approx(100.0)
        assert boosted.data_quality == plain.data_quality

    def test_confidence_clamped_at_100(self, regular_history: list[PeriodRecord]) -> None:
        config = _validate_and_build({
            "confidence": {
                "lifestyle_bonus_cap": 50,
                "lifestyle_bonus": {"stress_level": {"low": 40}},
            },
        })
        pattern = PatternAnalyzer(config).analyze(
            regular_history, LifestyleProfile.from_dict({"stress_level": "low"}), TEST_DATE
        )
        assert pattern.confidence == 100.0

    def test_cap_limits_bonus(self) -> None:
        config = _validate_and_build({
            "confidence": {
                "lifestyle_bonus_cap": 5,
                "lifestyle_bonus": {"stress_level": {"low": 4}, "sleep_quality": {"good": 3}},
            },
        })
        profile = LifestyleProfile.from_dict({"stress_level": "low", "sleep_quality": "good"})
        assert PatternAnalyzer(config).lifestyle_bonus(profile) == 5

    def test_age_outside_band_earns_nothing(self, prediction_config: PredictionConfig) -> None:
        analyzer = PatternAnalyzer(prediction_config)
        assert analyzer.lifestyle_bonus(LifestyleProfile(age=30)) == 3
        assert analyzer.lifestyle_bonus(LifestyleProfile(age=17)) == 0
        assert analyzer.lifestyle_bonus(LifestyleProfile(age=36)) == 0
        assert math.isclose(analyzer.lifestyle_bonus(LifestyleProfile()), 0.0)
