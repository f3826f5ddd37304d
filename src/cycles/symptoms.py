"""Daily symptom logs and frequency-based symptom insights."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Sequence

# Minimum logs before frequency insights are meaningful
MIN_LOGS_FOR_INSIGHTS = 5


@dataclass(frozen=True)
class Symptom:
    """A selectable symptom in the catalog."""

    id: str
    name: str
    category: str


@dataclass(frozen=True)
class SymptomLog:
    """One symptom reported on one day.

    Attributes:
        date:       Calendar date of the log entry.
        symptom_id: Catalog id of the symptom.
        intensity:  1–3 for intensity, or hours (1–12) for sleep duration.
        notes:      Free text.
    """

    date: date
    symptom_id: str
    intensity: int | None = None
    notes: str | None = None


DEFAULT_SYMPTOMS: tuple[Symptom, ...] = (
    Symptom("cramps", "Cramps", "body"),
    Symptom("headache", "Headache", "body"),
    Symptom("bloating", "Bloating", "body"),
    Symptom("tender_breasts", "Tender Breasts", "body"),
    Symptom("backache", "Backache", "body"),
    Symptom("nausea", "Nausea", "body"),
    Symptom("fatigue", "Fatigue", "body"),
    Symptom("acne", "Acne", "body"),
    Symptom("mood_happy", "Happy", "mood"),
    Symptom("mood_calm", "Calm", "mood"),
    Symptom("mood_neutral", "Neutral", "mood"),
    Symptom("mood_sad", "Sad", "mood"),
    Symptom("mood_irritable", "Irritable", "mood"),
    Symptom("mood_anxious", "Anxious", "mood"),
    Symptom("light", "Light Flow", "flow"),
    Symptom("medium", "Medium Flow", "flow"),
    Symptom("heavy", "Heavy Flow", "flow"),
    Symptom("spotting", "Spotting", "flow"),
    Symptom("sleep_good", "Good Sleep", "sleep"),
    Symptom("sleep_average", "Average Sleep", "sleep"),
    Symptom("sleep_poor", "Poor Sleep", "sleep"),
    Symptom("sleep_duration", "Sleep Duration", "sleep"),
)


def add_symptom_log(logs: Sequence[SymptomLog], new_log: SymptomLog) -> list[SymptomLog]:
    """Append ``new_log``, replacing any entry for the same date and symptom."""
    kept = [
        log for log in logs
        if not (log.date == new_log.date and log.symptom_id == new_log.symptom_id)
    ]
    return [*kept, new_log]


def remove_symptom_log(
    logs: Sequence[SymptomLog], day: date, symptom_id: str
) -> list[SymptomLog]:
    return [log for log in logs if not (log.date == day and log.symptom_id == symptom_id)]


def analyze_symptoms(
    logs: Sequence[SymptomLog],
    catalog: Sequence[Symptom] = DEFAULT_SYMPTOMS,
) -> list[str]:
    """Suggest coping strategies for frequently reported symptom categories."""
    if len(logs) < MIN_LOGS_FOR_INSIGHTS:
        return ["Continue tracking your symptoms to receive personalized insights"]

    by_id = {s.id: s for s in catalog}
    counts = Counter(
        by_id[log.symptom_id].category for log in logs if log.symptom_id in by_id
    )

    insights: list[str] = []
    if counts["mood"] > 3:
        insights.append(
            "You've reported multiple mood-related symptoms. Regular exercise and "
            "stress-reduction techniques may help manage mood fluctuations"
        )
    if counts["body"] > 3:
        insights.append(
            "For physical discomfort, consider heat therapy, gentle exercise, or "
            "over-the-counter pain relievers as needed"
        )
    if counts["sleep"] > 2:
        insights.append(
            "Your sleep patterns may be affected by your cycle. "
            "Consider maintaining a consistent sleep schedule"
        )
    return insights
