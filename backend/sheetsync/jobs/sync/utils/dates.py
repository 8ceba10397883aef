"""
Date normalization for sheet cells.

Sheet cells arrive as whatever the upstream renders: "03.02.2026", "3.2.26",
"2026-02-03T00:00:00", spreadsheet serial numbers ("46056"), month names
("3 Şubat 2026") or real date objects. Everything here returns a plain
``datetime.date`` or ``None``; nothing raises on bad input.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

DD_MM_YYYY = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{2}|\d{4})$")
YYYY_MM_DD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")
NUMERIC_VALUE = re.compile(r"^-?\d+(\.\d+)?$")
TEXT_DAY_FIRST = re.compile(r"^(\d{1,2})\s+([a-z]+)\s+(\d{2,4})$")
TEXT_MONTH_FIRST = re.compile(r"^([a-z]+)\s+(\d{1,2})\s+(\d{2,4})$")

# Spreadsheet serial day 0 (includes the Lotus 1900 leap-year offset).
SERIAL_EPOCH = date(1899, 12, 30)
# Plain numbers like "2024" are years, not serials; ~1954..~2173 only.
SERIAL_MIN = 20000
SERIAL_MAX = 100000

MIN_YEAR = 1900
MAX_YEAR = 2200

INVALID_DATE_DISPLAY = "Geçersiz tarih"

MONTHS = {
    "ocak": 1, "january": 1, "jan": 1,
    "subat": 2, "february": 2, "feb": 2,
    "mart": 3, "march": 3, "mar": 3,
    "nisan": 4, "april": 4, "apr": 4,
    "mayis": 5, "may": 5,
    "haziran": 6, "june": 6, "jun": 6,
    "temmuz": 7, "july": 7, "jul": 7,
    "agustos": 8, "august": 8, "aug": 8,
    "eylul": 9, "september": 9, "sep": 9,
    "ekim": 10, "october": 10, "oct": 10,
    "kasim": 11, "november": 11, "nov": 11,
    "aralik": 12, "december": 12, "dec": 12,
}

_TOKEN_FOLD = str.maketrans({
    "ç": "c", "ğ": "g", "ı": "i", "ö": "o", "ş": "s", "ü": "u",
    "Ç": "c", "Ğ": "g", "İ": "i", "I": "i", "Ö": "o", "Ş": "s", "Ü": "u",
})


def normalize_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year <= 69 else 1900 + year


def build_date(year: int, month: int, day: int) -> Optional[date]:
    """
    Build a date only if (year, month, day) names a real calendar day.
    31.04 or 30.02 give None instead of rolling over into the next month.
    """
    if not (MIN_YEAR <= year <= MAX_YEAR):
        return None
    try:
        d = date(year, month, day)
    except ValueError:
        return None
    if (d.year, d.month, d.day) != (year, month, day):
        return None
    return d


def _from_native(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return build_date(value.year, value.month, value.day)
    if isinstance(value, date):
        return build_date(value.year, value.month, value.day)
    return None


def _from_serial(raw: str) -> Optional[date]:
    if not NUMERIC_VALUE.match(raw):
        return None
    serial = float(raw)
    if serial < SERIAL_MIN or serial > SERIAL_MAX:
        return None
    d = SERIAL_EPOCH + timedelta(days=int(serial))
    return build_date(d.year, d.month, d.day)


def _from_text_month(raw: str) -> Optional[date]:
    token = re.sub(r"[^a-z0-9\s]", " ", raw.translate(_TOKEN_FOLD).lower())
    token = re.sub(r"\s+", " ", token).strip()
    if not token:
        return None

    m = TEXT_DAY_FIRST.match(token)
    if m:
        month = MONTHS.get(m.group(2))
        if month is None:
            return None
        return build_date(normalize_year(int(m.group(3))), month, int(m.group(1)))

    m = TEXT_MONTH_FIRST.match(token)
    if m:
        month = MONTHS.get(m.group(1))
        if month is None:
            return None
        return build_date(normalize_year(int(m.group(3))), month, int(m.group(2)))

    return None


def _from_generic(raw: str) -> Optional[date]:
    try:
        return _from_native(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        pass

    try:
        return _from_native(parsedate_to_datetime(raw))
    except (TypeError, ValueError, IndexError):
        pass

    return _from_text_month(raw)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse any sheet cell into a calendar date.

    Order: native date/datetime, DD.MM.YYYY (also DD.MM.YY),
    YYYY-MM-DD with optional time suffix, spreadsheet serial in [20000, 100000],
    then ISO / RFC 2822 / month-name text. Returns None when nothing matches.
    """
    if value is None or isinstance(value, bool):
        return None

    native = _from_native(value)
    if native is not None:
        return native
    if isinstance(value, (date, datetime)):
        return None

    raw = str(value).strip()
    if not raw:
        return None

    m = DD_MM_YYYY.match(raw)
    if m:
        return build_date(normalize_year(int(m.group(3))), int(m.group(2)), int(m.group(1)))

    m = YYYY_MM_DD.match(raw)
    if m:
        return build_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    serial = _from_serial(raw)
    if serial is not None:
        return serial
    if NUMERIC_VALUE.match(raw):
        return None

    return _from_generic(raw)


def to_utc_noon(value: Any) -> Optional[datetime]:
    # Noon keeps the calendar day stable when rendered anywhere between UTC-11 and UTC+11.
    d = parse_date(value)
    if d is None:
        return None
    return datetime.combine(d, time(12, 0, 0), tzinfo=timezone.utc)


def to_iso_date_only(value: Any) -> Optional[str]:
    d = parse_date(value)
    if d is None:
        return None
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_local_display(value: Any) -> str:
    d = parse_date(value)
    if d is None:
        return INVALID_DATE_DISPLAY
    return f"{d.day:02d}.{d.month:02d}.{d.year}"


def day_range_utc(value: str) -> Optional[tuple[datetime, datetime]]:
    """
    Inclusive UTC bounds for one calendar day, for `BETWEEN start AND end` queries.
    """
    d = parse_date(value)
    if d is None:
        return None
    start = datetime.combine(d, time(0, 0, 0), tzinfo=timezone.utc)
    end = datetime.combine(d, time(23, 59, 59, 999000), tzinfo=timezone.utc)
    return start, end
