"""Unit tests for timestamp utilities."""

from datetime import date, datetime, timedelta, timezone

import pytest

from helpmatch.utils.timestamps import (
    ensure_utc,
    format_timestamp,
    parse_iso_date,
    parse_iso_datetime,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        now = utc_now()

        assert now.tzinfo == timezone.utc
        assert isinstance(now, datetime)

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_none_passes_through(self):
        assert ensure_utc(None) is None

    def test_naive_is_treated_as_utc(self):
        naive = datetime(2020, 10, 14, 12, 0)
        assert ensure_utc(naive) == datetime(2020, 10, 14, 12, 0, tzinfo=timezone.utc)

    def test_other_timezone_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2020, 10, 14, 12, 0, tzinfo=plus_two)

        result = ensure_utc(local)

        assert result.tzinfo == timezone.utc
        assert result.hour == 10


class TestParseIsoDatetime:
    """Tests for parse_iso_datetime function."""

    @pytest.mark.parametrize(
        "value",
        [
            "2020-10-14T12:00:00Z",
            "2020-10-14T12:00:00+00:00",
            "2020-10-14T14:00:00+02:00",
        ],
    )
    def test_parses_to_utc(self, value):
        assert parse_iso_datetime(value) == datetime(2020, 10, 14, 12, 0, tzinfo=timezone.utc)

    def test_microseconds(self):
        parsed = parse_iso_datetime("2020-10-14T12:00:00.123456Z")
        assert parsed.microsecond == 123456

    @pytest.mark.parametrize("value", ["", "   ", "not a timestamp", "2020-10-14T25:00:00"])
    def test_invalid_returns_none(self, value):
        assert parse_iso_datetime(value) is None


class TestParseIsoDate:
    """Tests for parse_iso_date function."""

    def test_date_string(self):
        assert parse_iso_date("2020-10-14") == date(2020, 10, 14)

    def test_date_passes_through(self):
        assert parse_iso_date(date(2020, 10, 14)) == date(2020, 10, 14)

    def test_datetime_keeps_its_calendar_day(self):
        """No timezone shift: 23:30 at +02:00 stays on the 14th."""
        moment = datetime(2020, 10, 14, 23, 30, tzinfo=timezone(timedelta(hours=2)))
        assert parse_iso_date(moment) == date(2020, 10, 14)

    def test_timestamp_string_uses_date_part(self):
        assert parse_iso_date("2020-10-14T23:30:00+02:00") == date(2020, 10, 14)

    @pytest.mark.parametrize("value", [None, "", "2020-02-30", "14/10/2020", "soon", 20201014])
    def test_invalid_returns_none(self, value):
        assert parse_iso_date(value) is None


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_format_with_z_suffix(self):
        dt = datetime(2020, 10, 14, 12, 0, 0, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2020-10-14T12:00:00Z"

    def test_format_with_microseconds(self):
        dt = datetime(2020, 10, 14, 12, 0, 0, 5, tzinfo=timezone.utc)
        assert format_timestamp(dt, include_microseconds=True) == "2020-10-14T12:00:00.000005Z"

    def test_naive_is_formatted_as_utc(self):
        assert format_timestamp(datetime(2020, 10, 14, 12, 0)) == "2020-10-14T12:00:00Z"
