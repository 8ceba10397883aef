import re
from enum import Enum
from typing import Any, Optional

# Applied before upper() so "i" / "ı" / "İ" all collapse onto "I".
_DIACRITIC_FOLD = str.maketrans({
    "İ": "I", "ı": "I",
    "Ğ": "G", "ğ": "G",
    "Ü": "U", "ü": "U",
    "Ş": "S", "ş": "S",
    "Ö": "O", "ö": "O",
    "Ç": "C", "ç": "C",
})


def normalize_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).translate(_DIACRITIC_FOLD).upper().strip()


def normalize_token(value: Any) -> str:
    """normalize_key, then every run of non-alphanumerics becomes a single underscore."""
    return re.sub(r"[^A-Z0-9]+", "_", normalize_key(value)).strip("_")


def normalize_header(value: Any) -> str:
    return re.sub(r"[^A-Z0-9]", "", normalize_key(value))


def normalize_location_text(value: Any) -> str:
    text = re.sub(r"\s+", " ", "" if value is None else str(value))
    return re.sub(r"\s*-\s*$", "", text).strip()


# --- service status ---

class ServiceStatus(str, Enum):
    RANDEVU_VERILDI = "RANDEVU_VERILDI"
    DEVAM_EDIYOR = "DEVAM_EDIYOR"
    PARCA_BEKLIYOR = "PARCA_BEKLIYOR"
    MUSTERI_ONAY_BEKLIYOR = "MUSTERI_ONAY_BEKLIYOR"
    RAPOR_BEKLIYOR = "RAPOR_BEKLIYOR"
    KESIF_KONTROL = "KESIF_KONTROL"
    TAMAMLANDI = "TAMAMLANDI"
    IPTAL = "IPTAL"
    ERTELENDI = "ERTELENDI"


STATUS_ALIASES: dict[str, ServiceStatus] = {
    "RANDEVU": ServiceStatus.RANDEVU_VERILDI,
    "RANDEVUV": ServiceStatus.RANDEVU_VERILDI,
    "PLANLANDI": ServiceStatus.RANDEVU_VERILDI,
    "PLANLANDI_RANDEVU": ServiceStatus.RANDEVU_VERILDI,
    "DEVAM": ServiceStatus.DEVAM_EDIYOR,
    "PARCA": ServiceStatus.PARCA_BEKLIYOR,
    "ONAY_BEKLIYOR": ServiceStatus.MUSTERI_ONAY_BEKLIYOR,
    "RAPOR": ServiceStatus.RAPOR_BEKLIYOR,
    "KESIF": ServiceStatus.KESIF_KONTROL,
    "TAMAM": ServiceStatus.TAMAMLANDI,
    "BITTI": ServiceStatus.TAMAMLANDI,
}

# Substring fallback, first hit wins: "IPTAL EDILDI" must not land on anything else.
STATUS_KEYWORDS: tuple[tuple[tuple[str, ...], ServiceStatus], ...] = (
    (("IPTAL",), ServiceStatus.IPTAL),
    (("ERTEL",), ServiceStatus.ERTELENDI),
    (("BITTI", "TAMAM"), ServiceStatus.TAMAMLANDI),
    (("DEVAM",), ServiceStatus.DEVAM_EDIYOR),
    (("PARCA",), ServiceStatus.PARCA_BEKLIYOR),
    (("ONAY",), ServiceStatus.MUSTERI_ONAY_BEKLIYOR),
    (("RAPOR",), ServiceStatus.RAPOR_BEKLIYOR),
    (("KESIF", "KONTROL"), ServiceStatus.KESIF_KONTROL),
    (("RANDEVU", "PLAN"), ServiceStatus.RANDEVU_VERILDI),
)


def match_status(value: Any) -> Optional[ServiceStatus]:
    token = normalize_token(value)
    if not token:
        return None
    if token in ServiceStatus.__members__:
        return ServiceStatus[token]
    if token in STATUS_ALIASES:
        return STATUS_ALIASES[token]
    for needles, status in STATUS_KEYWORDS:
        if any(n in token for n in needles):
            return status
    return None


def status_to_canonical(value: Any) -> str:
    """
    Free-text / display status -> canonical status code.

    Unknown input is returned as its normalized token (not rejected), so a
    new status typed in the sheet shows up in the store rather than vanishing.
    """
    status = match_status(value)
    if status is not None:
        return status.value
    return normalize_token(value)


def status_to_display(value: Any) -> str:
    """
    Stored status -> the code the app reads. Strict: only exact codes and
    aliases are recognised (legacy rows hold "DEVAM_EDİYOR" or "DEVAM EDIYOR"),
    anything else comes back as its normalized key.
    """
    token = normalize_token(value)
    if token in ServiceStatus.__members__:
        return token
    if token in STATUS_ALIASES:
        return STATUS_ALIASES[token].value
    return normalize_key(value)


# --- location groups ---

class LocationGroup(str, Enum):
    YATMARIN = "YATMARIN"
    NETSEL = "NETSEL"
    DIS_SERVIS = "DIS_SERVIS"


# Order matters: reports aggregate on the first match.
LOCATION_TOKENS: tuple[tuple[str, LocationGroup], ...] = (
    ("YATMARIN", LocationGroup.YATMARIN),
    ("NETSEL", LocationGroup.NETSEL),
)
DEFAULT_LOCATION_GROUP = LocationGroup.DIS_SERVIS


def location_group(location: Any = None, address: Any = None) -> LocationGroup:
    combined = " ".join(
        normalize_key(normalize_location_text(v)) for v in (location, address)
    )
    for token, group in LOCATION_TOKENS:
        if token in combined:
            return group
    return DEFAULT_LOCATION_GROUP


# --- user roles ---

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    YETKILI = "YETKILI"


ROLE_ALIASES: dict[str, UserRole] = {
    "ADMIN": UserRole.ADMIN,
    "YETKILI": UserRole.YETKILI,
    "TEKNISYEN": UserRole.YETKILI,
    "TEKNIISYEN": UserRole.YETKILI,
    "MUSTERI": UserRole.YETKILI,
}


def role_to_canonical(value: Any) -> UserRole:
    return ROLE_ALIASES.get(normalize_token(value), UserRole.YETKILI)
