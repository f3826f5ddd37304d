"""Human-readable insights derived from a cycle pattern.

Pure templating over values the analyzer already computed:

- ``personalized_insights`` — threshold rules on confidence, variability,
  trend, average length, lifestyle flags and data completeness.
- ``analyze_cycle_data`` — irregularity screening of the current settings
  and forecast cycles.
- ``calculate_prediction_accuracy`` — share of past predictions that landed
  within a tolerance of the actual start.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence

from src.cycles.config_loader import PredictionConfig, get_prediction_config
from src.cycles.dates import days_between
from src.cycles.models import (
    CycleAnalysis,
    CycleData,
    CyclePattern,
    ExerciseFrequency,
    LifestyleProfile,
    PredictedCycle,
    SleepQuality,
    StressLevel,
    TrendDirection,
    WorkSchedule,
)

# Typical adult cycle length range used in copy
_TYPICAL_MIN_DAYS = 21
_TYPICAL_MAX_DAYS = 35


def personalized_insights(
    pattern: CyclePattern, lifestyle: LifestyleProfile | None = None
) -> list[str]:
    """Build the insight list shown next to a prediction."""
    insights: list[str] = []

    if pattern.confidence < 40:
        insights.append("Keep logging periods consistently for more accurate predictions!")
    elif pattern.confidence >= 75:
        insights.append("Great data quality! Your predictions are highly reliable.")

    if pattern.cycle_variability <= 2:
        insights.append("Your cycles are very regular - excellent for planning ahead!")
    elif pattern.cycle_variability > 6:
        insights.append(
            "Your cycles show variation. Consider tracking stress, sleep, and exercise patterns."
        )

    if pattern.trend_direction is TrendDirection.increasing:
        insights.append(
            "Your cycle length has been gradually increasing. "
            "This is often normal but worth monitoring."
        )
    elif pattern.trend_direction is TrendDirection.decreasing:
        insights.append(
            "Your cycle length has been gradually decreasing. "
            "Consider any recent lifestyle changes."
        )

    if pattern.average_cycle_length < 25:
        insights.append(
            f"Your cycles are shorter than average ({_TYPICAL_MIN_DAYS}-{_TYPICAL_MAX_DAYS} days). "
            "Consider discussing with a healthcare provider."
        )
    elif pattern.average_cycle_length > _TYPICAL_MAX_DAYS:
        insights.append(
            "Your cycles are longer than average. "
            "This can be normal, but tracking symptoms may help."
        )
    else:
        insights.append(
            f"Your cycle length is within the normal range of "
            f"{_TYPICAL_MIN_DAYS}-{_TYPICAL_MAX_DAYS} days."
        )

    if lifestyle is not None:
        insights.extend(_lifestyle_insights(lifestyle))

    if pattern.data_quality < 50:
        insights.append("Logging period end dates will improve prediction accuracy.")

    return insights


def _lifestyle_insights(lifestyle: LifestyleProfile) -> list[str]:
    insights: list[str] = []
    if lifestyle.stress_level is StressLevel.high:
        insights.append(
            "High stress levels can affect cycle regularity. "
            "Consider stress management techniques."
        )
    if lifestyle.exercise_frequency is ExerciseFrequency.intense:
        insights.append(
            "Intense exercise can sometimes affect cycles. Monitor for any changes in pattern."
        )
    if lifestyle.sleep_quality is SleepQuality.poor:
        insights.append(
            "Poor sleep quality can impact hormonal balance. "
            "Improving sleep may help cycle regularity."
        )
    if lifestyle.work_schedule is WorkSchedule.shift:
        insights.append(
            "Shift work can disrupt circadian rhythms and affect cycles. "
            "Try to maintain consistent sleep patterns when possible."
        )
    if lifestyle.has_condition("PCOS"):
        insights.append(
            "PCOS can cause irregular cycles. "
            "Your predictions account for this increased variability."
        )
    return insights


def analyze_cycle_data(
    cycle_data: CycleData, past_cycles: Sequence[PredictedCycle] | None = None
) -> CycleAnalysis:
    """Screen the current cycle settings for irregular patterns.

    ``past_cycles`` contributes a variation check over their *period* spans
    (start to end, inclusive), and those spans are also counted against the
    21 and 35 day *cycle* thresholds.  Any forecast with ordinary periods
    therefore adds to ``short_cycle_count`` without being flagged as
    irregular; callers reading the counts should keep that in mind.
    """
    analysis = CycleAnalysis()

    if cycle_data.start_date is None:
        analysis.is_regular = False
        analysis.irregular_patterns.append("Insufficient data to analyze cycle patterns")
        analysis.recommendations.append(
            "Track at least 3 complete cycles for personalized insights"
        )
        return analysis

    analysis.average_cycle_length = cycle_data.cycle_length

    if cycle_data.cycle_length < _TYPICAL_MIN_DAYS:
        analysis.is_regular = False
        analysis.short_cycle_count = 1
        analysis.irregular_patterns.append(
            "Your cycle appears to be shorter than the typical range (21-35 days)"
        )
        analysis.recommendations.append(
            "Consider consulting a healthcare provider about your short cycle length"
        )
    elif cycle_data.cycle_length > _TYPICAL_MAX_DAYS:
        analysis.is_regular = False
        analysis.long_cycle_count = 1
        analysis.irregular_patterns.append(
            "Your cycle appears to be longer than the typical range (21-35 days)"
        )
        analysis.recommendations.append(
            "Long cycles can sometimes indicate hormonal imbalances or conditions like PCOS"
        )

    if cycle_data.period_length > 7:
        analysis.is_regular = False
        analysis.irregular_patterns.append(
            "Your period length is longer than the typical range (3-7 days)"
        )
        analysis.recommendations.append(
            "Extended periods may indicate hormonal issues or other conditions "
            "requiring medical attention"
        )
    elif cycle_data.period_length < 2:
        analysis.is_regular = False
        analysis.irregular_patterns.append(
            "Your period length is shorter than the typical range (3-7 days)"
        )

    if past_cycles and len(past_cycles) > 1:
        spans = [
            days_between(c.period_start_date, c.period_end_date) + 1 for c in past_cycles
        ]
        variation = max(spans) - min(spans)
        analysis.cycle_length_variation = variation
        if variation > 7:
            analysis.is_regular = False
            analysis.irregular_patterns.append(
                f"Your cycle length varies significantly ({variation} days difference)"
            )
            analysis.recommendations.append(
                "Cycle variations exceeding 7 days may indicate hormonal fluctuations"
            )
        analysis.short_cycle_count += sum(1 for n in spans if n < _TYPICAL_MIN_DAYS)
        analysis.long_cycle_count += sum(1 for n in spans if n > _TYPICAL_MAX_DAYS)

    if not analysis.irregular_patterns:
        analysis.is_regular = True
        analysis.recommendations.append("Your cycle appears to be within typical ranges")
    else:
        analysis.recommendations.append("Track your symptoms consistently to identify patterns")
        analysis.recommendations.append(
            "Consider discussing your cycle patterns with a healthcare provider"
        )

    return analysis


def calculate_prediction_accuracy(
    predictions: Sequence[tuple[date, date | None]],
    tolerance_days: int | None = None,
    config: PredictionConfig | None = None,
) -> float:
    """Percentage (0–100) of predictions within ``tolerance_days`` of the actual date.

    Each item is ``(predicted_date, actual_date)``; predictions without an
    actual date yet count as misses.  ``tolerance_days`` defaults to
    ``tracking.accuracy_tolerance_days`` from the prediction config.
    """
    if tolerance_days is None:
        tolerance_days = (config or get_prediction_config()).tracking.accuracy_tolerance_days
    if not predictions:
        return 0.0
    hits = sum(
        1
        for predicted, actual in predictions
        if actual is not None and abs(days_between(predicted, actual)) <= tolerance_days
    )
    return hits / len(predictions) * 100
