import pytest

from sheetsync.jobs.sync.utils.mappers import (
    LocationGroup,
    ServiceStatus,
    UserRole,
    location_group,
    normalize_header,
    normalize_key,
    normalize_location_text,
    role_to_canonical,
    status_to_canonical,
    status_to_display,
)


def test_normalize_key_folds_turkish_letters():
    assert normalize_key("İş") == normalize_key("IS") == normalize_key("iş") == "IS"
    assert normalize_key("  çağrı  ") == "CAGRI"
    assert normalize_key(None) == ""


def test_normalize_header_drops_punctuation_and_spaces():
    assert normalize_header("Servis Açıklaması") == "SERVISACIKLAMASI"
    assert normalize_header("E-posta") == "EPOSTA"


def test_normalize_location_text():
    assert normalize_location_text("  Netsel   Marina - ") == "Netsel Marina"
    assert normalize_location_text(None) == ""


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("PLANLANDI-RANDEVU", "RANDEVU_VERILDI"),
        ("Randevu Verildi", "RANDEVU_VERILDI"),
        ("randevu", "RANDEVU_VERILDI"),
        ("Devam Ediyor", "DEVAM_EDIYOR"),
        ("DEVAM_EDİYOR", "DEVAM_EDIYOR"),
        ("Parça Bekliyor", "PARCA_BEKLIYOR"),
        ("Müşteri Onay Bekliyor", "MUSTERI_ONAY_BEKLIYOR"),
        ("rapor bekliyor", "RAPOR_BEKLIYOR"),
        ("Keşif / Kontrol", "KESIF_KONTROL"),
        ("Tamamlandı", "TAMAMLANDI"),
        ("bitti", "TAMAMLANDI"),
        ("İptal Edildi", "IPTAL"),
        ("ertelendi", "ERTELENDI"),
    ],
)
def test_status_to_canonical(raw, expected):
    assert status_to_canonical(raw) == expected


def test_unknown_status_passes_through_as_token():
    assert status_to_canonical("garanti işi") == "GARANTI_ISI"
    assert status_to_canonical(None) == ""


@pytest.mark.parametrize("status", list(ServiceStatus))
def test_display_inverts_canonical_on_the_canonical_set(status):
    assert status_to_display(status_to_canonical(status.value)) == status.value


def test_status_to_display_reads_legacy_spellings():
    assert status_to_display("DEVAM EDİYOR") == "DEVAM_EDIYOR"
    assert status_to_display("RANDEVU") == "RANDEVU_VERILDI"
    assert status_to_display("something else") == "SOMETHING ELSE"


@pytest.mark.parametrize(
    ("location", "address", "expected"),
    [
        ("Yatmarin", "", LocationGroup.YATMARIN),
        ("", "Netsel Marina, Marmaris", LocationGroup.NETSEL),
        ("netsel", None, LocationGroup.NETSEL),
        ("Bozburun", "Köy içi", LocationGroup.DIS_SERVIS),
        (None, None, LocationGroup.DIS_SERVIS),
        # both tokens present: YATMARIN wins
        ("Netsel", "Yatmarin çekek", LocationGroup.YATMARIN),
    ],
)
def test_location_group(location, address, expected):
    assert location_group(location, address) is expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("admin", UserRole.ADMIN),
        ("YETKİLİ", UserRole.YETKILI),
        ("teknisyen", UserRole.YETKILI),
        ("TEKNIISYEN", UserRole.YETKILI),
        ("müşteri", UserRole.YETKILI),
        ("", UserRole.YETKILI),
        ("superuser", UserRole.YETKILI),
    ],
)
def test_role_to_canonical(raw, expected):
    assert role_to_canonical(raw) is expected
