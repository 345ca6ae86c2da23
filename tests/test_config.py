"""Tests for configuration loading and validation."""

import pytest

from barber_booking.config import (
    AppConfig,
    BusinessConfig,
    CalendarSyncConfig,
    _validate_config,
)


def _business(**overrides) -> BusinessConfig:
    business = BusinessConfig.__new__(BusinessConfig)
    values = {
        "name": "Test Barber",
        "timezone": "Australia/Melbourne",
        "open_minutes": 9 * 60,
        "close_minutes": 18 * 60,
        "closed_weekdays": frozenset(),
        "slot_interval_minutes": 15,
    }
    values.update(overrides)
    for key, value in values.items():
        object.__setattr__(business, key, value)
    return business


def _sync(**overrides) -> CalendarSyncConfig:
    sync = CalendarSyncConfig.__new__(CalendarSyncConfig)
    values = {"enabled": True, "max_attempts": 2, "timeout_sec": 5.0, "backoff_sec": 0.5}
    values.update(overrides)
    for key, value in values.items():
        object.__setattr__(sync, key, value)
    return sync


def _config(business=None, sync=None, history_size=100) -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "business", business or _business())
    object.__setattr__(config, "calendar_sync", sync or _sync())
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "operation_history_size", history_size)
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_open_after_close(self):
        with pytest.raises(ValueError, match="BUSINESS_OPEN"):
            _validate_config(_config(_business(open_minutes=18 * 60, close_minutes=9 * 60)))

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="BUSINESS_TIMEZONE"):
            _validate_config(_config(_business(timezone="Mars/Olympus_Mons")))

    def test_weekday_out_of_range(self):
        with pytest.raises(ValueError, match="BUSINESS_CLOSED_DAYS"):
            _validate_config(_config(_business(closed_weekdays=frozenset({7}))))

    def test_closed_every_day(self):
        with pytest.raises(ValueError, match="BUSINESS_CLOSED_DAYS"):
            _validate_config(_config(_business(closed_weekdays=frozenset(range(7)))))

    def test_slot_interval(self):
        with pytest.raises(ValueError, match="SLOT_INTERVAL_MINUTES"):
            _validate_config(_config(_business(slot_interval_minutes=0)))

    def test_zero_attempts(self):
        with pytest.raises(ValueError, match="CALENDAR_SYNC_MAX_ATTEMPTS"):
            _validate_config(_config(sync=_sync(max_attempts=0)))

    def test_zero_timeout(self):
        with pytest.raises(ValueError, match="CALENDAR_SYNC_TIMEOUT"):
            _validate_config(_config(sync=_sync(timeout_sec=0)))

    def test_negative_backoff(self):
        with pytest.raises(ValueError, match="CALENDAR_SYNC_BACKOFF"):
            _validate_config(_config(sync=_sync(backoff_sec=-1)))

    def test_history_size(self):
        with pytest.raises(ValueError, match="OPERATION_HISTORY_SIZE"):
            _validate_config(_config(history_size=0))


class TestEnvParsing:
    def test_safe_int_parsing(self):
        from barber_booking.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        from barber_booking.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_bad_value(self, monkeypatch):
        from barber_booking.config import _safe_int

        monkeypatch.setenv("BARBER_TEST_INT", "many")
        with pytest.raises(ValueError, match="BARBER_TEST_INT"):
            _safe_int("BARBER_TEST_INT", "1")

    @pytest.mark.parametrize("raw,expected", [("true", True), ("0", False), ("Yes", True), ("off", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        from barber_booking.config import _safe_bool

        monkeypatch.setenv("BARBER_TEST_BOOL", raw)
        assert _safe_bool("BARBER_TEST_BOOL", "true") is expected

    @pytest.mark.parametrize("raw,expected", [("09:00", 540), ("17:30", 1050), ("24:00", 1440)])
    def test_safe_clock(self, monkeypatch, raw, expected):
        from barber_booking.config import _safe_clock

        monkeypatch.setenv("BARBER_TEST_CLOCK", raw)
        assert _safe_clock("BARBER_TEST_CLOCK", "09:00") == expected

    @pytest.mark.parametrize("raw", ["9", "25:00", "10:75", "ten:thirty"])
    def test_safe_clock_bad_value(self, monkeypatch, raw):
        from barber_booking.config import _safe_clock

        monkeypatch.setenv("BARBER_TEST_CLOCK", raw)
        with pytest.raises(ValueError, match="BARBER_TEST_CLOCK"):
            _safe_clock("BARBER_TEST_CLOCK", "09:00")

    def test_safe_weekdays(self, monkeypatch):
        from barber_booking.config import _safe_weekdays

        monkeypatch.setenv("BARBER_TEST_DAYS", "0, 6")
        assert _safe_weekdays("BARBER_TEST_DAYS", "") == frozenset({0, 6})
