"""Tests for prediction_config.yaml loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.cycles.config_loader import (
    ConfigValidationError,
    PredictionConfig,
    _validate_and_build,
    get_prediction_config,
    load_prediction_config,
    reload_prediction_config,
)


class TestConfigLoading:
    """Tests for loading the bundled prediction_config.yaml."""

    def test_load_default_config(self, prediction_config: PredictionConfig) -> None:
        assert prediction_config.version == "1.0"
        assert prediction_config.recency_decay == 0.1

    def test_bounds(self, prediction_config: PredictionConfig) -> None:
        b = prediction_config.bounds
        assert (b.min_cycle_days, b.max_cycle_days) == (21, 45)
        assert (b.min_period_days, b.max_period_days) == (2, 10)

    def test_clamp_cycle(self, prediction_config: PredictionConfig) -> None:
        b = prediction_config.bounds
        assert b.clamp_cycle(12.0) == 21
        assert b.clamp_cycle(60.5) == 45
        assert b.clamp_cycle(29.3) == 29.3

    def test_defaults(self, prediction_config: PredictionConfig) -> None:
        d = prediction_config.defaults
        assert d.cycle_length == 28
        assert d.period_length == 5
        assert d.confidence == 10

    def test_confidence_thresholds(self, prediction_config: PredictionConfig) -> None:
        c = prediction_config.confidence
        assert c.high_threshold == 75
        assert c.medium_threshold == 50
        assert c.lifestyle_bonus_cap == 15

    def test_lifestyle_bonus_lookup(self, prediction_config: PredictionConfig) -> None:
        assert prediction_config.lifestyle_bonus("stress_level", "low") == 4
        assert prediction_config.lifestyle_bonus("stress_level", "high") == 0.0
        assert prediction_config.lifestyle_bonus("stress_level", None) == 0.0
        assert prediction_config.lifestyle_bonus("unknown_field", "low") == 0.0

    def test_lifestyle_adjustment_lookup(self, prediction_config: PredictionConfig) -> None:
        assert prediction_config.lifestyle_adjustment("stress_level", "high") == 0.5
        assert prediction_config.lifestyle_adjustment("work_schedule", "irregular") == 0.4
        assert prediction_config.lifestyle_adjustment("work_schedule", "regular") == 0.0

    def test_condition_adjustment_substring_match(
        self, prediction_config: PredictionConfig
    ) -> None:
        """Condition keywords match case-insensitively inside free-text entries."""
        assert prediction_config.condition_adjustment({"PCOS (Polycystic Ovary Syndrome)"}) == 1.0
        assert prediction_config.condition_adjustment({"pcos"}) == 1.0
        assert prediction_config.condition_adjustment({"PCOS", "thyroid disorder"}) == 1.5
        assert prediction_config.condition_adjustment(set()) == 0.0

    def test_condition_counted_once(self, prediction_config: PredictionConfig) -> None:
        """Two entries mentioning PCOS still add the PCOS shift only once."""
        assert prediction_config.condition_adjustment(["PCOS", "suspected PCOS"]) == 1.0

    def test_fertility_constants(self, prediction_config: PredictionConfig) -> None:
        f = prediction_config.fertility
        assert f.luteal_phase_days == 14
        assert f.days_before_ovulation == 5
        assert f.days_after_ovulation == 1

    def test_tracking(self, prediction_config: PredictionConfig) -> None:
        assert prediction_config.tracking.hysteresis_days == 2
        assert prediction_config.tracking.future_cycles == 5


class TestConfigValidation:
    """Tests for config validation logic."""

    def test_empty_config_uses_defaults(self) -> None:
        config = _validate_and_build({})
        assert config.bounds.min_cycle_days == 21
        assert config.defaults.cycle_length == 28
        assert config.lifestyle_adjustments == {}

    def test_inverted_cycle_bounds_raise(self) -> None:
        raw = {"bounds": {"min_cycle_days": 45, "max_cycle_days": 21}}
        with pytest.raises(ConfigValidationError, match="min_cycle_days"):
            _validate_and_build(raw)

    def test_non_numeric_value_raises(self) -> None:
        raw = {"weighting": {"recency_decay": "fast"}}
        with pytest.raises(ConfigValidationError, match="recency_decay"):
            _validate_and_build(raw)

    def test_negative_decay_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="recency_decay"):
            _validate_and_build({"weighting": {"recency_decay": -0.5}})

    def test_unknown_lifestyle_field_raises(self) -> None:
        raw = {"lifestyle_adjustments": {"caffeine_intake": {"high": 0.2}}}
        with pytest.raises(ConfigValidationError, match="caffeine_intake"):
            _validate_and_build(raw)

    def test_inverted_thresholds_raise(self) -> None:
        raw = {"confidence": {"high_threshold": 40, "medium_threshold": 60}}
        with pytest.raises(ConfigValidationError, match="thresholds"):
            _validate_and_build(raw)

    def test_all_errors_reported_together(self) -> None:
        raw = {
            "bounds": {"min_cycle_days": 50, "max_cycle_days": 20},
            "weighting": {"recency_decay": -1},
        }
        with pytest.raises(ConfigValidationError, match="2 validation error"):
            _validate_and_build(raw)

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "prediction_config.yaml"
        config_file.write_text("bounds: [unclosed")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_prediction_config(path=config_file)

    def test_load_nonexistent_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_prediction_config(path=Path("/nonexistent/path/config.yaml"))

    def test_hot_reload(self, tmp_path: Path) -> None:
        """reload_prediction_config() should replace the global singleton."""
        config_content = """
version: "2.0-test"
bounds:
  min_cycle_days: 20
  max_cycle_days: 50
lifestyle_adjustments:
  health_conditions:
    PCOS: 2.0
"""
        config_file = tmp_path / "prediction_config.yaml"
        config_file.write_text(config_content.strip())

        try:
            new_config = reload_prediction_config(path=config_file)
            assert new_config.version == "2.0-test"
            assert get_prediction_config() is new_config
            assert new_config.condition_adjustment({"PCOS"}) == 2.0
        finally:
            reload_prediction_config()

    def test_failed_reload_keeps_old_config(self, tmp_path: Path) -> None:
        before = get_prediction_config()
        config_file = tmp_path / "prediction_config.yaml"
        config_file.write_text("bounds:\n  min_cycle_days: 60\n  max_cycle_days: 30\n")
        with pytest.raises(ConfigValidationError):
            reload_prediction_config(path=config_file)
        assert get_prediction_config() is before
