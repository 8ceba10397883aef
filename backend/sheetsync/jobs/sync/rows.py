"""
Sheet values -> canonical records.

The Sheets API hands back a ragged list of lists with the header row first.
`resolve_columns` pins every registered field to a column index by header
alias, `iter_raw_rows` turns the data
rows into field-keyed dicts, and `parse_row` turns one of those into either a
ParsedRow or a RowError. Nothing past this module sees untyped cells.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from sheetsync.jobs.sync.errors import ColumnLayoutError
from sheetsync.jobs.sync.registry import SheetConfig
from sheetsync.jobs.sync.types import (
    CanonicalPersonnelRecord,
    CanonicalServiceRecord,
    CanonicalVesselRecord,
    ParsedRow,
    RowError,
    RowOutcome,
)
from sheetsync.jobs.sync.utils.dates import parse_date
from sheetsync.jobs.sync.utils.mappers import (
    match_status,
    normalize_header,
    normalize_key,
    normalize_location_text,
    normalize_token,
    status_to_canonical,
)

logger = logging.getLogger(__name__)

RawRow = dict[str, Any]

TRUE_TOKENS = {"TRUE", "EVET", "E", "1", "AKTIF", "X", "YES", "Y"}
FALSE_TOKENS = {"FALSE", "HAYIR", "H", "0", "PASIF", "NO", "N"}

TITLE_ALIASES = {
    "USTA": "USTA",
    "USTABASI": "USTA",
    "TEKNISYEN": "USTA",
    "CIRAK": "CIRAK",
    "YONETICI": "YONETICI",
    "OFIS": "OFIS",
}
DEFAULT_TITLE = "CIRAK"

PERSONNEL_ROLE_ALIASES = {
    "TEKNISYEN": "teknisyen",
    "YETKILI": "yetkili",
    "YONETICI": "yetkili",
}
DEFAULT_PERSONNEL_ROLE = "teknisyen"


def column_letter_to_index(letter: str) -> int:
    clean = (letter or "").strip().upper()
    if not re.fullmatch(r"[A-Z]+", clean):
        return -1
    result = 0
    for ch in clean:
        result = result * 26 + (ord(ch) - 64)
    return result - 1


@dataclass(frozen=True)
class ColumnResolution:
    index_map: dict[str, int]
    warnings: tuple[str, ...]


def resolve_columns(cfg: SheetConfig, headers: list[str]) -> ColumnResolution:
    """
    Locate every registered column in the header row.

    Raises ColumnLayoutError when a required column can't be found by name:
    reading ids out of the wrong column would corrupt the store.
    """
    normalized = [normalize_header(h) for h in headers]
    index_map: dict[str, int] = {}
    problems: list[str] = []
    warnings: list[str] = []

    for col in cfg.columns:
        fallback_idx = column_letter_to_index(col.letter)
        aliases = {normalize_header(a) for a in col.aliases}

        if not aliases:
            index_map[col.field] = fallback_idx
            continue

        found = next((i for i, h in enumerate(normalized) if h and h in aliases), None)
        if found is not None:
            index_map[col.field] = found
            if found != fallback_idx:
                warnings.append(
                    f"Column '{col.field}' resolved by header at {found + 1} (registered {col.letter})"
                )
            continue

        if col.required:
            got = normalized[fallback_idx] if 0 <= fallback_idx < len(normalized) else ""
            problems.append(
                f"Header not found for '{col.field}': expected one of [{', '.join(sorted(aliases))}], "
                f"column {col.letter} has '{got or '(empty)'}'"
            )
            continue

        # Optional and unnamed: leave it empty rather than guess a column.
        warnings.append(f"Header not found for '{col.field}', column left empty")

    if problems:
        raise ColumnLayoutError(problems, headers)

    return ColumnResolution(index_map=index_map, warnings=tuple(warnings))


def _cell(row: list[Any], idx: int) -> Any:
    if idx < 0 or idx >= len(row):
        return None
    return row[idx]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def iter_raw_rows(values: list[list[Any]], index_map: dict[str, int]) -> Iterator[tuple[int, RawRow]]:
    """
    Yield (sheet_row_number, raw_row) for each non-blank data row.
    Row numbers are 1-based with the header on row 1, matching what users see.
    """
    for offset, row in enumerate(values[1:], start=2):
        row = row or []
        if all(_is_blank(v) for v in row):
            continue
        yield offset, {name: _cell(row, idx) for name, idx in index_map.items()}


# --- cell coercion ---

def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _opt_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _phone(value: Any) -> Optional[str]:
    text = re.sub(r"\s+", " ", _text(value)).strip()
    return text or None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = _text(value).replace(" ", "")
    if not text:
        return None
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"not a number: {value!r}") from None


def _int(value: Any) -> Optional[int]:
    number = _number(value)
    if number is None:
        return None
    if number != int(number):
        raise ValueError(f"not a whole number: {value!r}")
    return int(number)


def _bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    token = normalize_key(value)
    if not token:
        return default
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise ValueError(f"not a yes/no value: {value!r}")


def _row_ref(cfg: SheetConfig, row_number: int) -> str:
    return f"{cfg.key}:{row_number}"


class _Collector:
    """Collects per-cell problems so one row reports all of them at once."""

    def __init__(self) -> None:
        self.problems: list[str] = []

    def take(self, field_name: str, fn: Callable[[Any], Any], value: Any) -> Any:
        try:
            return fn(value)
        except ValueError as e:
            self.problems.append(f"{field_name}: {e}")
            return None


def _require_id(raw: RawRow, problems: list[str]) -> str:
    external_id = _text(raw.get("external_id"))
    if not external_id:
        problems.append("missing external id")
    return external_id


def _date_or_error(value: Any) -> Any:
    if _is_blank(value):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"unparseable date {_text(value)!r}")
    return parsed


# --- per-entity parsers ---

def parse_service_row(cfg: SheetConfig, row_number: int, raw: RawRow) -> RowOutcome:
    ref = _row_ref(cfg, row_number)
    c = _Collector()
    external_id = _require_id(raw, c.problems)
    service_date = c.take("service_date", _date_or_error, raw.get("service_date"))

    if c.problems:
        return RowError(row_ref=ref, message="; ".join(c.problems))

    warnings: list[str] = []
    status_raw = raw.get("status")
    status = status_to_canonical(status_raw)
    if match_status(status_raw) is None:
        warnings.append(f"status_unrecognized:{normalize_token(status_raw) or 'EMPTY'}")

    record = CanonicalServiceRecord(
        external_id=external_id,
        service_date=service_date,
        service_time=_opt_text(raw.get("service_time")),
        vessel_name=_text(raw.get("vessel_name")),
        address=normalize_location_text(raw.get("address")),
        location=normalize_location_text(raw.get("location")),
        description=_text(raw.get("description")),
        contact_name=_opt_text(raw.get("contact_name")),
        contact_phone=_phone(raw.get("contact_phone")),
        status=status,
    )
    skip_reason = "STATUS_FILTERED" if status in cfg.skip_statuses else None
    return ParsedRow(row_ref=ref, record=record, skip_reason=skip_reason, warnings=tuple(warnings))


def parse_personnel_row(cfg: SheetConfig, row_number: int, raw: RawRow) -> RowOutcome:
    ref = _row_ref(cfg, row_number)
    c = _Collector()
    external_id = _require_id(raw, c.problems)
    start_year = c.take("start_year", _int, raw.get("start_year"))
    active = c.take("active", _bool, raw.get("active"))

    if c.problems:
        return RowError(row_ref=ref, message="; ".join(c.problems))

    warnings: list[str] = []
    title_token = normalize_token(raw.get("title"))
    title = TITLE_ALIASES.get(title_token, title_token or DEFAULT_TITLE)
    if title_token and title_token not in TITLE_ALIASES:
        warnings.append(f"title_unrecognized:{title_token}")

    role_token = normalize_token(raw.get("role"))
    role = PERSONNEL_ROLE_ALIASES.get(role_token, role_token.lower() or DEFAULT_PERSONNEL_ROLE)

    record = CanonicalPersonnelRecord(
        external_id=external_id,
        name=_text(raw.get("name")),
        title=title,
        role=role,
        active=active,
        start_year=start_year,
        phone=_phone(raw.get("phone")),
        email=_opt_text(raw.get("email")),
        address=_opt_text(raw.get("address")),
        notes=_opt_text(raw.get("notes")),
    )
    return ParsedRow(row_ref=ref, record=record, warnings=tuple(warnings))


def parse_vessel_row(cfg: SheetConfig, row_number: int, raw: RawRow) -> RowOutcome:
    ref = _row_ref(cfg, row_number)
    c = _Collector()
    external_id = _require_id(raw, c.problems)
    length_m = c.take("length_m", _number, raw.get("length_m"))
    build_year = c.take("build_year", _int, raw.get("build_year"))
    active = c.take("active", _bool, raw.get("active"))

    if c.problems:
        return RowError(row_ref=ref, message="; ".join(c.problems))

    record = CanonicalVesselRecord(
        external_id=external_id,
        name=_text(raw.get("name")),
        serial_no=_opt_text(raw.get("serial_no")),
        brand=_opt_text(raw.get("brand")),
        model=_opt_text(raw.get("model")),
        length_m=length_m,
        engine_type=_opt_text(raw.get("engine_type")),
        engine_serial_no=_opt_text(raw.get("engine_serial_no")),
        build_year=build_year,
        colour=_opt_text(raw.get("colour")),
        ownership=_opt_text(raw.get("ownership")),
        address=_opt_text(raw.get("address")),
        phone=_phone(raw.get("phone")),
        email=_opt_text(raw.get("email")),
        notes=_opt_text(raw.get("notes")),
        active=active,
    )
    return ParsedRow(row_ref=ref, record=record)


PARSERS: dict[str, Callable[[SheetConfig, int, RawRow], RowOutcome]] = {
    "service": parse_service_row,
    "personnel": parse_personnel_row,
    "vessel": parse_vessel_row,
}


def parse_row(cfg: SheetConfig, row_number: int, raw: RawRow) -> RowOutcome:
    try:
        return PARSERS[cfg.entity](cfg, row_number, raw)
    except Exception as e:
        # Parsers are total over cell values; this only fires on a bug.
        logger.exception("Row %s crashed the %s parser", _row_ref(cfg, row_number), cfg.entity)
        return RowError(row_ref=_row_ref(cfg, row_number), message=f"parser failure: {e!r}")


def parse_values(cfg: SheetConfig, values: list[list[Any]]) -> tuple[list[RowOutcome], tuple[str, ...]]:
    """
    Full sheet -> outcomes, plus header warnings. An empty sheet is zero rows.
    Duplicate external ids: the first row wins, later ones become RowErrors.
    """
    if not values:
        return [], ()

    headers = [_text(h) for h in (values[0] or [])]
    resolution = resolve_columns(cfg, headers)

    outcomes: list[RowOutcome] = []
    seen: dict[str, str] = {}
    for row_number, raw in iter_raw_rows(values, resolution.index_map):
        outcome = parse_row(cfg, row_number, raw)
        if isinstance(outcome, ParsedRow):
            ext_id = outcome.record.external_id
            if ext_id in seen:
                outcome = RowError(
                    row_ref=outcome.row_ref,
                    message=f"duplicate external id {ext_id!r} (first seen at {seen[ext_id]})",
                )
            else:
                seen[ext_id] = outcome.row_ref
        outcomes.append(outcome)

    return outcomes, resolution.warnings
