from dataclasses import dataclass, field
from typing import Optional

from sheetsync.jobs.sync.errors import UnknownSheetError


@dataclass(frozen=True)
class ColumnSpec:
    field: str                       # attribute on the canonical record
    letter: str                      # registered position ("A", "B", ...)
    required: bool = False
    aliases: tuple[str, ...] = ()    # accepted header spellings


@dataclass(frozen=True)
class SheetConfig:
    key: str
    sheet_name: str
    cell_range: str
    entity: str                      # service / personnel / vessel
    columns: tuple[ColumnSpec, ...]
    skip_statuses: frozenset[str] = field(default_factory=frozenset)

    @property
    def a1_range(self) -> str:
        return f"{self.sheet_name}!{self.cell_range}"


PLANLAMA = SheetConfig(
    key="PLANLAMA",
    sheet_name="DB_Planlama",
    cell_range="A:J",
    entity="service",
    columns=(
        ColumnSpec("external_id", "A", required=True, aliases=("id", "servis id", "servis no", "kayit no")),
        ColumnSpec("service_date", "B", aliases=("tarih", "date")),
        ColumnSpec("service_time", "C", aliases=("saat", "time")),
        ColumnSpec("vessel_name", "D", aliases=("tekne adi", "tekneadi", "boat name")),
        ColumnSpec("address", "E", aliases=("adres", "address")),
        ColumnSpec("location", "F", aliases=("yer", "lokasyon", "location")),
        ColumnSpec("description", "G", aliases=("servis aciklamasi", "aciklama", "description")),
        ColumnSpec("contact_name", "H", aliases=("irtibat kisi", "irtibat", "contact")),
        ColumnSpec("contact_phone", "I", aliases=("telefon", "phone")),
        ColumnSpec("status", "J", aliases=("durum", "status")),
    ),
    # Finished and survey-only jobs are tracked elsewhere.
    skip_statuses=frozenset({"TAMAMLANDI", "KESIF_KONTROL"}),
)

PERSONEL = SheetConfig(
    key="PERSONEL",
    sheet_name="Personel_Listesi",
    cell_range="A:J",
    entity="personnel",
    columns=(
        ColumnSpec("external_id", "A", required=True, aliases=("id", "personel id", "sicil no")),
        ColumnSpec("name", "B", aliases=("ad", "ad soyad", "isim", "name")),
        ColumnSpec("title", "C", aliases=("unvan", "title")),
        ColumnSpec("role", "D", aliases=("rol", "role")),
        ColumnSpec("active", "E", aliases=("aktif", "active")),
        ColumnSpec("start_year", "F", aliases=("giris yili", "start year")),
        ColumnSpec("phone", "G", aliases=("telefon", "phone")),
        ColumnSpec("email", "H", aliases=("email", "e-posta", "eposta")),
        ColumnSpec("address", "I", aliases=("adres", "address")),
        ColumnSpec("notes", "J", aliases=("aciklama", "notlar", "notes")),
    ),
)

TEKNELER = SheetConfig(
    key="TEKNELER",
    sheet_name="Tekneler",
    cell_range="A:P",
    entity="vessel",
    columns=(
        ColumnSpec("external_id", "A", required=True, aliases=("id", "tekne id")),
        ColumnSpec("name", "B", aliases=("ad", "tekne adi", "name")),
        ColumnSpec("serial_no", "C", aliases=("seri no", "serino")),
        ColumnSpec("brand", "D", aliases=("marka", "brand")),
        ColumnSpec("model", "E", aliases=("model",)),
        ColumnSpec("length_m", "F", aliases=("boyut", "boy", "length")),
        ColumnSpec("engine_type", "G", aliases=("motor tipi", "engine")),
        ColumnSpec("engine_serial_no", "H", aliases=("motor seri no",)),
        ColumnSpec("build_year", "I", aliases=("yil", "year")),
        ColumnSpec("colour", "J", aliases=("renk", "color", "colour")),
        ColumnSpec("ownership", "K", aliases=("mulkiyet", "ownership")),
        ColumnSpec("address", "L", aliases=("adres", "address")),
        ColumnSpec("phone", "M", aliases=("telefon", "phone")),
        ColumnSpec("email", "N", aliases=("email", "e-posta", "eposta")),
        ColumnSpec("notes", "O", aliases=("aciklama", "notlar", "notes")),
        ColumnSpec("active", "P", aliases=("aktif", "active")),
    ),
)

SHEETS: dict[str, SheetConfig] = {
    cfg.key: cfg for cfg in (PLANLAMA, PERSONEL, TEKNELER)
}

PRIMARY_SHEET_KEY = PLANLAMA.key


def get_sheet_config(sheet_key: str) -> SheetConfig:
    cfg = SHEETS.get(sheet_key)
    if cfg is None:
        raise UnknownSheetError(sheet_key)
    return cfg


def is_registered(sheet_key: Optional[str]) -> bool:
    return bool(sheet_key) and sheet_key in SHEETS
