"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from scheduling_engine.config import (
    AppConfig,
    NotificationConfig,
    PricingConfig,
    ServiceWindowConfig,
    _safe_bool,
    _safe_float,
    _safe_int,
    _safe_int_list,
    _validate_config,
)


def config_with(**overrides) -> AppConfig:
    return replace(AppConfig(), **overrides)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.service_window.start_hour == 8
        assert config.service_window.end_hour == 18
        assert config.pricing.labor_rate == 7500
        assert config.pricing.tax_rate == pytest.approx(0.0875)
        assert config.notifications.reminder_offsets_minutes == (1440, 120, 30)

    def test_hour_out_of_range(self):
        config = config_with(service_window=replace(ServiceWindowConfig(), end_hour=24))
        with pytest.raises(ValueError, match="SERVICE_WINDOW_END_HOUR"):
            _validate_config(config)

    def test_window_start_after_end(self):
        config = config_with(
            service_window=replace(ServiceWindowConfig(), start_hour=18, end_hour=8)
        )
        with pytest.raises(ValueError, match="SERVICE_WINDOW_START_HOUR"):
            _validate_config(config)

    def test_slot_length_positive(self):
        config = config_with(
            service_window=replace(ServiceWindowConfig(), default_slot_minutes=0)
        )
        with pytest.raises(ValueError, match="DEFAULT_SLOT_MINUTES"):
            _validate_config(config)

    def test_tax_rate_above_one(self):
        config = config_with(pricing=replace(PricingConfig(), tax_rate=1.5))
        with pytest.raises(ValueError, match="TAX_RATE"):
            _validate_config(config)

    def test_negative_labor_rate(self):
        config = config_with(pricing=replace(PricingConfig(), labor_rate=-1))
        with pytest.raises(ValueError, match="LABOR_RATE_CENTS"):
            _validate_config(config)

    def test_maximum_surge_below_one(self):
        config = config_with(pricing=replace(PricingConfig(), maximum_surge=0.5))
        with pytest.raises(ValueError, match="MAXIMUM_SURGE"):
            _validate_config(config)

    def test_reminder_offsets_positive(self):
        config = config_with(
            notifications=replace(NotificationConfig(), reminder_offsets_minutes=(60, 0))
        )
        with pytest.raises(ValueError, match="REMINDER_OFFSETS_MINUTES"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_invalid(self, monkeypatch):
        monkeypatch.setenv("SCHED_TEST_INT", "ten")
        with pytest.raises(ValueError, match="SCHED_TEST_INT"):
            _safe_int("SCHED_TEST_INT", "1")

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("0", False), ("Yes", True), ("off", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SCHED_TEST_BOOL", raw)
        assert _safe_bool("SCHED_TEST_BOOL", "true") is expected

    def test_safe_bool_invalid(self, monkeypatch):
        monkeypatch.setenv("SCHED_TEST_BOOL", "maybe")
        with pytest.raises(ValueError, match="SCHED_TEST_BOOL"):
            _safe_bool("SCHED_TEST_BOOL", "true")

    def test_safe_int_list(self, monkeypatch):
        monkeypatch.setenv("SCHED_TEST_LIST", "1440, 60")
        assert _safe_int_list("SCHED_TEST_LIST", "") == (1440, 60)

    def test_safe_int_list_invalid(self, monkeypatch):
        monkeypatch.setenv("SCHED_TEST_LIST", "1440,soon")
        with pytest.raises(ValueError, match="SCHED_TEST_LIST"):
            _safe_int_list("SCHED_TEST_LIST", "")
