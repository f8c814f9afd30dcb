import threading
from datetime import datetime

import pytest

from reminders_bridge.dates import (
    ClockPreference,
    format_date_time,
    is_date_only_format,
    parse_date,
    parse_date_with_type,
    validate_date,
)
from reminders_bridge.errors import InvalidDateError


def _message(value):
    with pytest.raises(InvalidDateError) as exc_info:
        parse_date(value)
    return str(exc_info.value)


class TestParseDate:
    def test_leap_day_with_time(self):
        assert parse_date("2024-02-29 12:00:00") == "February 29, 2024 12:00:00 PM"

    def test_date_only(self):
        parsed = parse_date_with_type("2024-12-25")
        assert parsed.formatted == "December 25, 2024"
        assert parsed.is_date_only is True

    def test_date_time_is_not_date_only(self):
        parsed = parse_date_with_type("2024-12-25 09:05:07")
        assert parsed.formatted == "December 25, 2024 9:05:07 AM"
        assert parsed.is_date_only is False

    def test_midnight_is_twelve_am(self):
        assert parse_date("2025-01-01 00:00:00") == "January 1, 2025 12:00:00 AM"

    def test_naive_iso_8601(self):
        assert parse_date("2024-12-25T14:30") == "December 25, 2024 2:30:00 PM"

    def test_iso_8601_with_offset_is_accepted(self):
        parsed = parse_date_with_type("2024-12-25T14:30:00Z")
        assert parsed.is_date_only is False
        assert "2024" in parsed.formatted

    @pytest.mark.parametrize("value", ["2024-13-01", "not-a-date", "2023-02-29", "25/12/2024", "2024-12-25 25:00:00"])
    def test_invalid_inputs_share_one_message_shape(self, value):
        message = _message(value)
        assert message.startswith(f'Invalid or unsupported date format: "{value}".')
        assert message.endswith('Example: "2024-12-25 14:30:00"')

    def test_messages_differ_only_by_value(self):
        assert _message("2024-13-01").replace("2024-13-01", "X") == _message("not-a-date").replace("not-a-date", "X")

    def test_invalid_date_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_date("tomorrow")

    def test_validate_returns_value(self):
        assert validate_date("2024-12-25") == "2024-12-25"

    def test_date_only_detection(self):
        assert is_date_only_format("2024-12-25")
        assert not is_date_only_format("2024-12-25 10:00:00")
        assert not is_date_only_format("2024-12-25T10:00")


class TestClockFormats:
    def test_24_hour_format(self):
        assert format_date_time(datetime(2024, 12, 25, 14, 30, 0), True) == "December 25, 2024 14:30:00"
        assert format_date_time(datetime(2024, 12, 25, 7, 5, 9), True) == "December 25, 2024 07:05:09"

    def test_12_hour_format(self):
        assert format_date_time(datetime(2024, 12, 25, 12, 0, 0), False) == "December 25, 2024 12:00:00 PM"


def _settle():
    """Join any running clock refresh threads."""
    for thread in threading.enumerate():
        if thread.name == "clock-preference":
            thread.join(5)


class TestClockPreference:
    def test_first_call_returns_default_then_refreshed_value(self, monkeypatch):
        clock = ClockPreference(allow_reset=True)
        monkeypatch.setattr(clock, "_read_preference", lambda: True)
        assert clock.use_24_hour() is False
        _settle()
        assert clock.use_24_hour() is True
        assert parse_date("2024-12-25 14:30:00", clock) == "December 25, 2024 14:30:00"

    def test_failed_refresh_keeps_12_hour(self, monkeypatch):
        clock = ClockPreference(allow_reset=True)

        def boom():
            raise OSError("defaults missing")

        monkeypatch.setattr(clock, "_read_preference", boom)
        clock.use_24_hour()
        _settle()
        assert clock.use_24_hour() is False

    def test_refresh_runs_once(self, monkeypatch):
        clock = ClockPreference(allow_reset=True)
        calls = []

        def read():
            calls.append(1)
            return False

        monkeypatch.setattr(clock, "_read_preference", read)
        for _ in range(5):
            clock.use_24_hour()
        _settle()
        clock.use_24_hour()
        assert len(calls) == 1

    def test_reset_allows_recomputation(self, monkeypatch):
        clock = ClockPreference(allow_reset=True)
        monkeypatch.setattr(clock, "_read_preference", lambda: True)
        clock.use_24_hour()
        _settle()
        clock.reset()
        assert clock.use_24_hour() is False
        _settle()
        assert clock.use_24_hour() is True

    def test_refresh_started_before_reset_is_discarded(self, monkeypatch):
        clock = ClockPreference(allow_reset=True)
        entered = threading.Event()
        release = threading.Event()

        def slow_read():
            entered.set()
            release.wait(5)
            return True

        monkeypatch.setattr(clock, "_read_preference", slow_read)
        clock.use_24_hour()
        assert entered.wait(5)
        clock.reset()
        monkeypatch.setattr(clock, "_read_preference", lambda: False)
        release.set()
        _settle()
        assert clock.use_24_hour() is False
        _settle()
        assert clock.use_24_hour() is False

    def test_reset_outside_test_posture_raises(self):
        with pytest.raises(RuntimeError):
            ClockPreference().reset()
