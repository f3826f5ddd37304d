"""Load, validate, and hot-reload the Lunara prediction configuration.

The config lives in ``prediction_config.yaml`` alongside this module.  At
startup it is loaded once and cached.  Call ``reload_prediction_config()`` to
re-read from disk after an edit — no restart required.

Usage::

    from src.cycles.config_loader import get_prediction_config

    config = get_prediction_config()
    config.bounds.min_cycle_days                       # 21
    config.lifestyle_adjustment("stress_level", "high")  # 0.5
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("lunara.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "prediction_config.yaml"

# Lifestyle fields that may carry a confidence bonus or a cycle adjustment
_LIFESTYLE_FIELDS = ("stress_level", "exercise_frequency", "sleep_quality", "work_schedule")


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class BoundsConfig:
    """Plausibility bounds for raw cycle and period samples."""

    min_cycle_days: int = 21
    max_cycle_days: int = 45
    min_period_days: int = 2
    max_period_days: int = 10

    def clamp_cycle(self, length: float) -> float:
        return min(max(length, self.min_cycle_days), self.max_cycle_days)


@dataclass
class DefaultsConfig:
    """Values returned when there is not enough history to analyze."""

    cycle_length: int = 28
    period_length: int = 5
    confidence: float = 10.0


@dataclass
class TrendConfig:
    """Linear-regression trend detection settings."""

    min_samples: int = 3
    window: int = 4
    slope_threshold: float = 0.5
    variability_factor: float = 0.3
    max_adjustment_days: float = 1.5


@dataclass
class ConfidenceConfig:
    """Confidence banding and lifestyle bonus settings.

    Attributes:
        high_threshold:      confidence ≥ this → 'high'.
        medium_threshold:    confidence ≥ this → 'medium'.
        min_range_days:      Minimum half-width of the prediction range.
        lifestyle_bonus_cap: Maximum total lifestyle bonus.
        age_min / age_max:   Inclusive age band that earns ``age_bonus``.
        lifestyle_bonus:     field → value → bonus points.
    """

    high_threshold: float = 75
    medium_threshold: float = 50
    min_range_days: float = 2
    lifestyle_bonus_cap: float = 15
    age_min: int = 18
    age_max: int = 35
    age_bonus: float = 3
    lifestyle_bonus: dict[str, dict[str, float]] = field(default_factory=dict)


@dataclass
class FertilityConfig:
    """Calendar-method fertility constants."""

    luteal_phase_days: int = 14
    days_before_ovulation: int = 5
    days_after_ovulation: int = 1
    percentage_drop_per_day: int = 20


@dataclass
class TrackingConfig:
    """Settings for the stateful tracker built on top of the engine."""

    hysteresis_days: int = 2
    future_cycles: int = 5
    accuracy_tolerance_days: int = 2


@dataclass
class PredictionConfig:
    """Complete, validated prediction configuration.

    This is the single in-memory representation of prediction_config.yaml.
    The analyzer, predictor, fertility calculators and tracker all read from
    this object.

    Attributes:
        version:                Config schema version string.
        bounds:                 Sample plausibility bounds.
        defaults:               Fallback pattern values.
        recency_decay:          Exponential decay rate per transition.
        trend:                  Trend detection settings.
        confidence:             Confidence banding + lifestyle bonus.
        lifestyle_adjustments:  field → value → cycle-length shift (days).
        condition_adjustments:  condition keyword → cycle-length shift (days).
        fertility:              Ovulation / fertile window constants.
        tracking:               Tracker hysteresis and forecast settings.
    """

    version: str
    bounds: BoundsConfig
    defaults: DefaultsConfig
    recency_decay: float
    trend: TrendConfig
    confidence: ConfidenceConfig
    lifestyle_adjustments: dict[str, dict[str, float]]
    condition_adjustments: dict[str, float]
    fertility: FertilityConfig
    tracking: TrackingConfig
    _raw: dict = field(default_factory=dict, repr=False)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    def lifestyle_bonus(self, name: str, value: str | None) -> float:
        """Return the confidence bonus for a lifestyle field value (0.0 if none)."""
        if value is None:
            return 0.0
        return self.confidence.lifestyle_bonus.get(name, {}).get(value, 0.0)

    def lifestyle_adjustment(self, name: str, value: str | None) -> float:
        """Return the cycle-length shift for a lifestyle field value (0.0 if none)."""
        if value is None:
            return 0.0
        return self.lifestyle_adjustments.get(name, {}).get(value, 0.0)

    def condition_adjustment(self, conditions: frozenset[str] | set[str] | list[str]) -> float:
        """Sum the cycle-length shifts for every configured condition keyword
        that appears in at least one reported health condition.

        Matching is a case-insensitive substring test, so both ``"PCOS"`` and
        ``"PCOS (Polycystic Ovary Syndrome)"`` trigger the PCOS shift.  Each
        keyword contributes at most once.
        """
        lowered = [c.lower() for c in conditions]
        total = 0.0
        for keyword, shift in self.condition_adjustments.items():
            needle = keyword.lower()
            if any(needle in c for c in lowered):
                total += shift
        return total


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when prediction_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Prediction config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> PredictionConfig:
    """Validate the raw YAML dict and construct a PredictionConfig.

    Every problem is collected before raising so one edit cycle can fix them
    all.

    Raises:
        ConfigValidationError: If any value is missing a number or out of range.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, default: float, path: str) -> float:
        value = section.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {value!r}")
            return float(default)

    def _mapping(section: Any, path: str) -> dict:
        if section is None:
            return {}
        if not isinstance(section, dict):
            errors.append(f"'{path}' must be a mapping")
            return {}
        return section

    def _value_table(section: Any, path: str) -> dict[str, dict[str, float]]:
        table: dict[str, dict[str, float]] = {}
        for name, values in _mapping(section, path).items():
            if name not in _LIFESTYLE_FIELDS:
                errors.append(f"{path}.{name} is not a known lifestyle field")
                continue
            values = _mapping(values, f"{path}.{name}")
            table[name] = {
                str(v): _number(values, v, 0.0, f"{path}.{name}") for v in values
            }
        return table

    version = str(raw.get("version", "1.0"))

    # ── Bounds ──
    b_raw = _mapping(raw.get("bounds"), "bounds")
    bounds = BoundsConfig(
        min_cycle_days=int(_number(b_raw, "min_cycle_days", 21, "bounds")),
        max_cycle_days=int(_number(b_raw, "max_cycle_days", 45, "bounds")),
        min_period_days=int(_number(b_raw, "min_period_days", 2, "bounds")),
        max_period_days=int(_number(b_raw, "max_period_days", 10, "bounds")),
    )
    if bounds.min_cycle_days >= bounds.max_cycle_days:
        errors.append(
            f"bounds: min_cycle_days ({bounds.min_cycle_days}) must be below "
            f"max_cycle_days ({bounds.max_cycle_days})"
        )
    if bounds.min_period_days >= bounds.max_period_days:
        errors.append(
            f"bounds: min_period_days ({bounds.min_period_days}) must be below "
            f"max_period_days ({bounds.max_period_days})"
        )

    # ── Defaults ──
    d_raw = _mapping(raw.get("defaults"), "defaults")
    defaults = DefaultsConfig(
        cycle_length=int(_number(d_raw, "cycle_length", 28, "defaults")),
        period_length=int(_number(d_raw, "period_length", 5, "defaults")),
        confidence=_number(d_raw, "confidence", 10, "defaults"),
    )

    # ── Weighting ──
    w_raw = _mapping(raw.get("weighting"), "weighting")
    recency_decay = _number(w_raw, "recency_decay", 0.1, "weighting")
    if recency_decay < 0:
        errors.append(f"weighting.recency_decay = {recency_decay} must be ≥ 0")

    # ── Trend ──
    t_raw = _mapping(raw.get("trend"), "trend")
    trend = TrendConfig(
        min_samples=int(_number(t_raw, "min_samples", 3, "trend")),
        window=int(_number(t_raw, "window", 4, "trend")),
        slope_threshold=_number(t_raw, "slope_threshold", 0.5, "trend"),
        variability_factor=_number(t_raw, "variability_factor", 0.3, "trend"),
        max_adjustment_days=_number(t_raw, "max_adjustment_days", 1.5, "trend"),
    )
    if trend.window < 2:
        errors.append(f"trend.window = {trend.window} must be ≥ 2")

    # ── Confidence ──
    c_raw = _mapping(raw.get("confidence"), "confidence")
    lb_raw = dict(_mapping(c_raw.get("lifestyle_bonus"), "confidence.lifestyle_bonus"))
    age_min = int(_number(lb_raw, "age_min", 18, "confidence.lifestyle_bonus"))
    age_max = int(_number(lb_raw, "age_max", 35, "confidence.lifestyle_bonus"))
    age_bonus = _number(lb_raw, "age", 3, "confidence.lifestyle_bonus")
    for key in ("age_min", "age_max", "age"):
        lb_raw.pop(key, None)
    confidence = ConfidenceConfig(
        high_threshold=_number(c_raw, "high_threshold", 75, "confidence"),
        medium_threshold=_number(c_raw, "medium_threshold", 50, "confidence"),
        min_range_days=_number(c_raw, "min_range_days", 2, "confidence"),
        lifestyle_bonus_cap=_number(c_raw, "lifestyle_bonus_cap", 15, "confidence"),
        age_min=age_min,
        age_max=age_max,
        age_bonus=age_bonus,
        lifestyle_bonus=_value_table(lb_raw, "confidence.lifestyle_bonus"),
    )
    if not (0 <= confidence.medium_threshold <= confidence.high_threshold <= 100):
        errors.append(
            "confidence thresholds must satisfy 0 ≤ medium ≤ high ≤ 100, got "
            f"medium={confidence.medium_threshold}, high={confidence.high_threshold}"
        )

    # ── Lifestyle adjustments ──
    la_raw = dict(_mapping(raw.get("lifestyle_adjustments"), "lifestyle_adjustments"))
    hc_raw = _mapping(la_raw.pop("health_conditions", None), "lifestyle_adjustments.health_conditions")
    condition_adjustments = {
        str(k): _number(hc_raw, k, 0.0, "lifestyle_adjustments.health_conditions")
        for k in hc_raw
    }
    lifestyle_adjustments = _value_table(la_raw, "lifestyle_adjustments")

    # ── Fertility ──
    f_raw = _mapping(raw.get("fertility"), "fertility")
    fertility = FertilityConfig(
        luteal_phase_days=int(_number(f_raw, "luteal_phase_days", 14, "fertility")),
        days_before_ovulation=int(_number(f_raw, "days_before_ovulation", 5, "fertility")),
        days_after_ovulation=int(_number(f_raw, "days_after_ovulation", 1, "fertility")),
        percentage_drop_per_day=int(_number(f_raw, "percentage_drop_per_day", 20, "fertility")),
    )
    if fertility.luteal_phase_days >= bounds.min_cycle_days:
        errors.append(
            f"fertility.luteal_phase_days ({fertility.luteal_phase_days}) must be "
            f"shorter than bounds.min_cycle_days ({bounds.min_cycle_days})"
        )

    # ── Tracking ──
    tr_raw = _mapping(raw.get("tracking"), "tracking")
    tracking = TrackingConfig(
        hysteresis_days=int(_number(tr_raw, "hysteresis_days", 2, "tracking")),
        future_cycles=int(_number(tr_raw, "future_cycles", 5, "tracking")),
        accuracy_tolerance_days=int(_number(tr_raw, "accuracy_tolerance_days", 2, "tracking")),
    )

    if errors:
        raise ConfigValidationError(
            f"prediction_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return PredictionConfig(
        version=version,
        bounds=bounds,
        defaults=defaults,
        recency_decay=recency_decay,
        trend=trend,
        confidence=confidence,
        lifestyle_adjustments=lifestyle_adjustments,
        condition_adjustments=condition_adjustments,
        fertility=fertility,
        tracking=tracking,
        _raw=raw,
    )


def load_prediction_config(path: Path | None = None) -> PredictionConfig:
    """Load and validate the prediction config from disk.

    Args:
        path: Override path to YAML. Uses the bundled prediction_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded prediction config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: PredictionConfig | None = None
_config_lock = threading.Lock()


def get_prediction_config() -> PredictionConfig:
    """Return the global PredictionConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_prediction_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_prediction_config()
    return _config


def reload_prediction_config(path: Path | None = None) -> PredictionConfig:
    """Reload the prediction config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_prediction_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info(
        "Reloaded prediction config: %s → %s",
        old_version,
        new_config.version,
    )
    return new_config
