from datetime import date, datetime, timedelta, timezone

import pytest

from interval_tracker.errors import FormatError
from interval_tracker.timemath import (
    ClockTime,
    clock_time_of,
    compute_duration,
    date_to_string,
    elapsed_seconds,
    format_duration,
    parse_clock_time,
    parse_duration,
    string_to_date,
    to_seconds_of_day,
)


class TestParseClockTime:
    def test_components(self):
        assert parse_clock_time("07:05:09") == ClockTime(7, 5, 9)

    def test_single_digit_hour(self):
        assert parse_clock_time("7:05:09") == ClockTime(7, 5, 9)

    def test_renders_zero_padded(self):
        assert str(parse_clock_time("7:05:09")) == "07:05:09"

    @pytest.mark.parametrize(
        "value",
        ["24:00:00", "12:60:00", "12:00:60", "12:00", "12:00:00:00", "aa:bb:cc", "", " 12:00:00", "12:00:00\n"],
    )
    def test_rejects_malformed(self, value):
        with pytest.raises(FormatError):
            parse_clock_time(value)

    def test_rejects_non_string(self):
        with pytest.raises(FormatError):
            parse_clock_time(None)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_clock_time("99:99:99")


class TestSecondsOfDay:
    def test_from_string(self):
        assert to_seconds_of_day("01:02:03") == 3723

    def test_from_clock_time(self):
        assert to_seconds_of_day(ClockTime(23, 59, 59)) == 86399

    def test_round_trip(self):
        assert ClockTime.from_seconds(3723) == ClockTime(1, 2, 3)

    def test_from_seconds_out_of_range(self):
        with pytest.raises(FormatError):
            ClockTime.from_seconds(86400)


class TestComputeDuration:
    def test_crosses_midnight(self):
        assert compute_duration("23:00:00", "01:00:00") == ("02:00:00", True)

    def test_same_day(self):
        assert compute_duration("09:00:00", "17:30:00") == ("08:30:00", False)

    def test_zero_length(self):
        assert compute_duration("10:00:00", "10:00:00") == ("00:00:00", False)

    def test_one_second_before_start_is_almost_a_day(self):
        assert compute_duration("10:00:00", "09:59:59") == ("23:59:59", True)

    def test_never_negative_and_below_a_day(self):
        for start in range(0, 86400, 3599):
            for end in range(0, 86400, 4001):
                duration, crossed = compute_duration(
                    ClockTime.from_seconds(start), ClockTime.from_seconds(end)
                )
                elapsed = parse_duration(duration)
                assert 0 <= elapsed <= 86399
                assert crossed == (end < start)
                assert (start + elapsed) % 86400 == end

    def test_malformed_input_fails(self):
        with pytest.raises(FormatError):
            compute_duration("9am", "10:00:00")


class TestFormatDuration:
    def test_zero(self):
        assert format_duration(0) == "00:00:00"

    def test_more_than_a_day(self):
        assert format_duration(25 * 3600 + 61) == "25:01:01"

    def test_negative_is_clamped(self, caplog):
        assert format_duration(-5) == "00:00:00"
        assert "clamped" in caplog.text


class TestDates:
    @pytest.mark.parametrize(
        "value", ["2024-01-01", "2024-02-29", "1999-12-31", "0999-01-01", "0050-06-15"]
    )
    def test_round_trip(self, value):
        assert date_to_string(string_to_date(value)) == value

    def test_early_years_are_zero_padded(self):
        assert date_to_string(date(50, 6, 15)) == "0050-06-15"
        assert date_to_string(datetime(999, 1, 1, 12, 0)) == "0999-01-01"

    def test_datetime_drops_time(self):
        assert date_to_string(datetime(2024, 1, 5, 23, 59, 59)) == "2024-01-05"

    def test_string_to_date(self):
        assert string_to_date("2024-03-09") == date(2024, 3, 9)

    @pytest.mark.parametrize("value", ["2024-02-30", "2024/01/01", "24-01-01", "2024-1-1", ""])
    def test_rejects_invalid(self, value):
        with pytest.raises(FormatError):
            string_to_date(value)


class TestTimerHelpers:
    def test_clock_time_of(self):
        assert clock_time_of(datetime(2024, 1, 1, 7, 3, 2, 999)) == "07:03:02"

    def test_elapsed(self):
        start = datetime(2024, 1, 1, 23, 0, 0)
        assert elapsed_seconds(start, start + timedelta(hours=2, seconds=5)) == 7205

    def test_elapsed_clamped_when_clock_goes_back(self):
        start = datetime(2024, 1, 1, 12, 0, 0)
        assert elapsed_seconds(start, start - timedelta(minutes=1)) == 0

    def test_elapsed_mixed_awareness(self):
        start = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        now = (start + timedelta(minutes=30)).astimezone().replace(tzinfo=None)
        assert elapsed_seconds(start, now) == 1800
