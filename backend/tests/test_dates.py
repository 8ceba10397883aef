from datetime import date, datetime, timedelta, timezone

import pytest

from sheetsync.jobs.sync.utils.dates import (
    INVALID_DATE_DISPLAY,
    day_range_utc,
    format_local_display,
    parse_date,
    to_iso_date_only,
    to_utc_noon,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("03.02.2026", date(2026, 2, 3)),
        ("3.2.2026", date(2026, 2, 3)),
        ("03.02.26", date(2026, 2, 3)),
        ("03.02.69", date(2069, 2, 3)),
        ("03.02.70", date(1970, 2, 3)),
        ("2026-02-03", date(2026, 2, 3)),
        ("2026-02-03T00:00:00.000Z", date(2026, 2, 3)),
        ("2026-02-03 14:30", date(2026, 2, 3)),
        ("46056", date(2026, 2, 3)),
        (46056, date(2026, 2, 3)),
        (46056.75, date(2026, 2, 3)),
        ("3 Şubat 2026", date(2026, 2, 3)),
        ("3 subat 2026", date(2026, 2, 3)),
        ("February 3, 2026", date(2026, 2, 3)),
        ("  03.02.2026  ", date(2026, 2, 3)),
    ],
)
def test_parse_date_supported_formats(raw, expected):
    assert parse_date(raw) == expected


def test_parse_date_native_values():
    assert parse_date(date(2026, 2, 3)) == date(2026, 2, 3)
    assert parse_date(datetime(2026, 2, 3, 23, 0)) == date(2026, 2, 3)
    # aware datetimes are read in UTC
    tz_plus3 = timezone(timedelta(hours=3))
    assert parse_date(datetime(2026, 2, 4, 1, 0, tzinfo=tz_plus3)) == date(2026, 2, 3)


@pytest.mark.parametrize("raw", ["31.04.2024", "2024-02-30", "29.02.2023", "00.01.2024", "15.13.2024"])
def test_impossible_calendar_dates_are_rejected(raw):
    assert parse_date(raw) is None


@pytest.mark.parametrize("raw", ["02/03/2026", "02-03-2026"])
def test_day_first_dates_need_dot_separators(raw):
    assert parse_date(raw) is None


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "garbage", "2024", "19999", "100001", "-5", True, False, [], {}, "12.12", "not a date 2026"],
)
def test_parse_date_never_raises_on_garbage(raw):
    assert parse_date(raw) is None


def test_leap_day_is_accepted():
    assert parse_date("29.02.2024") == date(2024, 2, 29)


def test_year_bounds():
    assert parse_date("01.01.1899") is None
    assert parse_date("01.01.2201") is None
    assert parse_date("01.01.1900") == date(1900, 1, 1)


def test_to_utc_noon():
    value = to_utc_noon("03.02.2026")
    assert value == datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc)
    assert to_utc_noon("garbage") is None


@pytest.mark.parametrize("raw", ["03.02.2026", "46056", "2026-02-03T10:00:00Z", "3 Şubat 2026", "31.12.99"])
def test_iso_date_survives_noon_round_trip(raw):
    assert to_iso_date_only(to_utc_noon(raw)) == to_iso_date_only(raw)


def test_to_iso_date_only_pads():
    assert to_iso_date_only("3.2.2026") == "2026-02-03"
    assert to_iso_date_only(None) is None


def test_format_local_display():
    assert format_local_display("2026-02-03") == "03.02.2026"
    assert format_local_display("nope") == INVALID_DATE_DISPLAY


def test_day_range_utc():
    start, end = day_range_utc("03.02.2026")
    assert start == datetime(2026, 2, 3, tzinfo=timezone.utc)
    assert end == datetime(2026, 2, 3, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert day_range_utc("31.04.2024") is None
