# Overview: Pytest coverage for UTC helpers and business-day bounds.

from datetime import date, datetime, timedelta

import pytest
from shoppos.time_utils import (
    business_date,
    day_bounds,
    month_bounds,
    parse_day,
    parse_iso_datetime,
    to_utc_z,
)


class TestIsoHelpers:

    def test_offset_normalized_to_utc_naive(self):
        assert parse_iso_datetime("2026-03-10T09:00:00-06:00") == datetime(2026, 3, 10, 15, 0)
        assert parse_iso_datetime("2026-03-10T15:00:00Z") == datetime(2026, 3, 10, 15, 0)
        assert parse_iso_datetime("  ") is None

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 3, 10, 15, 0, 0, 999)) == "2026-03-10T15:00:00Z"
        assert to_utc_z(None) is None


class TestBusinessDays:

    def test_business_date_crosses_midnight(self):
        # 02:00 UTC is still the previous evening in Mexico City
        assert business_date(datetime(2026, 3, 11, 2, 0), "America/Mexico_City") == date(2026, 3, 10)
        assert business_date(datetime(2026, 3, 11, 2, 0), "UTC") == date(2026, 3, 11)

    def test_day_bounds_half_open(self):
        start, end = day_bounds(date(2026, 3, 10), "America/Mexico_City")
        assert start == datetime(2026, 3, 10, 6, 0)
        assert end == datetime(2026, 3, 11, 6, 0)

    def test_dst_day_is_23_hours(self):
        start, end = day_bounds(date(2026, 3, 8), "America/New_York")
        assert end - start == timedelta(hours=23)

    def test_month_bounds(self):
        start, end = month_bounds("2026-12", "UTC")
        assert start == datetime(2026, 12, 1)
        assert end == datetime(2027, 1, 1)

    @pytest.mark.parametrize("value", ["2026-13", "March", "", None])
    def test_month_bounds_rejects_bad_format(self, value):
        with pytest.raises(ValueError):
            month_bounds(value, "UTC")


class TestParseDay:

    def test_valid_and_empty(self):
        assert parse_day("2026-03-10") == date(2026, 3, 10)
        assert parse_day("") is None
        assert parse_day(None) is None

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_day("10/03/2026")
