from datetime import date

import pytest

from sheetsync.jobs.sync.errors import ColumnLayoutError, UnknownSheetError
from sheetsync.jobs.sync.registry import PERSONEL, PLANLAMA, SHEETS, TEKNELER, get_sheet_config, is_registered
from sheetsync.jobs.sync.rows import column_letter_to_index, parse_values, resolve_columns
from sheetsync.jobs.sync.types import CanonicalServiceRecord, ParsedRow, RowError

from sheet_fixtures import PERSONEL_HEADERS, PLANLAMA_HEADERS, TEKNELER_HEADERS, service_row


def test_registry_contents():
    assert list(SHEETS) == ["PLANLAMA", "PERSONEL", "TEKNELER"]
    assert PLANLAMA.a1_range == "DB_Planlama!A:J"
    assert get_sheet_config("TEKNELER") is TEKNELER
    assert is_registered("PERSONEL")
    assert not is_registered("PUANLAMA")
    assert not is_registered(None)


def test_unknown_sheet_raises():
    with pytest.raises(UnknownSheetError):
        get_sheet_config("AYLIK_OZET")


@pytest.mark.parametrize(("letter", "index"), [("A", 0), ("J", 9), ("Z", 25), ("AA", 26), ("", -1), ("1", -1)])
def test_column_letter_to_index(letter, index):
    assert column_letter_to_index(letter) == index


def test_resolve_columns_follows_moved_headers():
    headers = list(PLANLAMA_HEADERS)
    headers[3], headers[4] = headers[4], headers[3]   # Adres before Tekne Adı
    resolution = resolve_columns(PLANLAMA, headers)
    assert resolution.index_map["vessel_name"] == 4
    assert resolution.index_map["address"] == 3
    assert any("vessel_name" in w for w in resolution.warnings)


def test_resolve_columns_missing_required_header_is_a_layout_error():
    headers = ["Numara"] + PLANLAMA_HEADERS[1:]
    with pytest.raises(ColumnLayoutError) as exc:
        resolve_columns(PLANLAMA, headers)
    assert "external_id" in str(exc.value)
    assert exc.value.headers == headers


def test_resolve_columns_missing_optional_header_reads_empty():
    headers = PLANLAMA_HEADERS[:7] + ["?", "Telefon", "Durum"]
    resolution = resolve_columns(PLANLAMA, headers)
    assert "contact_name" not in resolution.index_map
    assert any("contact_name" in w for w in resolution.warnings)


def test_parse_values_spec_scenario():
    values = [
        PLANLAMA_HEADERS,
        ["2720", "03.02.2026", "", "", "", "", "", "", "", "PLANLANDI-RANDEVU"],
        [None, "garbage"],
    ]
    outcomes, _ = parse_values(PLANLAMA, values)

    assert len(outcomes) == 2
    ok, bad = outcomes
    assert isinstance(ok, ParsedRow)
    assert ok.record.external_id == "2720"
    assert ok.record.service_date == date(2026, 2, 3)
    assert ok.record.status == "RANDEVU_VERILDI"

    assert isinstance(bad, RowError)
    assert bad.row_ref == "PLANLAMA:3"
    assert "missing external id" in bad.message
    assert "unparseable date" in bad.message


def test_parse_values_normalizes_service_fields():
    values = [
        PLANLAMA_HEADERS,
        service_row(" 2721 ", date="46056", location=" Netsel  Marina - ", phone="0532  111   22 33", contact=""),
    ]
    (row,), _ = parse_values(PLANLAMA, values)
    record = row.record
    assert isinstance(record, CanonicalServiceRecord)
    assert record.external_id == "2721"
    assert record.service_date == date(2026, 2, 3)
    assert record.location == "Netsel Marina"
    assert record.contact_phone == "0532 111 22 33"
    assert record.contact_name is None


def test_parse_values_skips_blank_rows_and_keeps_sheet_row_numbers():
    values = [PLANLAMA_HEADERS, ["", "  ", None], [], service_row("9")]
    (row,), _ = parse_values(PLANLAMA, values)
    assert row.row_ref == "PLANLAMA:4"


def test_filtered_statuses_are_marked_not_rejected():
    values = [PLANLAMA_HEADERS, service_row("1", status="Tamamlandı"), service_row("2", status="Keşif Kontrol")]
    outcomes, _ = parse_values(PLANLAMA, values)
    assert [o.skip_reason for o in outcomes] == ["STATUS_FILTERED", "STATUS_FILTERED"]


def test_unrecognized_status_is_kept_with_a_warning():
    (row,), _ = parse_values(PLANLAMA, [PLANLAMA_HEADERS, service_row("1", status="Garanti")])
    assert row.record.status == "GARANTI"
    assert row.warnings == ("status_unrecognized:GARANTI",)


def test_duplicate_ids_first_row_wins():
    values = [PLANLAMA_HEADERS, service_row("7"), service_row("7", vessel="Other")]
    first, second = parse_values(PLANLAMA, values)[0]
    assert isinstance(first, ParsedRow)
    assert first.record.vessel_name == "Mavi Yol"
    assert isinstance(second, RowError)
    assert "duplicate external id" in second.message


def test_empty_sheet_is_zero_rows():
    assert parse_values(PLANLAMA, []) == ([], ())


def test_personnel_rows():
    values = [
        PERSONEL_HEADERS,
        ["P1", "Ayşe Demir", "Ustabaşı", "Yönetici", "Evet", "2019", "0555 000 00 00", "a@x.com", "", ""],
        ["P2", "Can", "", "", "", "", "", "", "", ""],
        ["P3", "Bora", "USTA", "", "belki", "iki bin", "", "", "", ""],
    ]
    p1, p2, p3 = parse_values(PERSONEL, values)[0]

    assert p1.record.title == "USTA"
    assert p1.record.role == "yetkili"
    assert p1.record.active is True
    assert p1.record.start_year == 2019

    assert p2.record.title == "CIRAK"
    assert p2.record.role == "teknisyen"
    assert p2.record.active is True

    assert isinstance(p3, RowError)
    assert "start_year" in p3.message and "active" in p3.message


def test_vessel_rows():
    values = [
        TEKNELER_HEADERS,
        ["T1", "Mavi Yol", "SN-1", "Beneteau", "Oceanis", "12,5", "Dizel", "E-9", "2015",
         "Beyaz", "Özel", "", "", "", "", "Hayır"],
    ]
    (row,), _ = parse_values(TEKNELER, values)
    assert row.record.length_m == 12.5
    assert row.record.build_year == 2015
    assert row.record.active is False
    assert row.record.colour == "Beyaz"
