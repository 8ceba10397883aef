from sheetsync.jobs.sync.errors import UpstreamFetchError
from sheetsync.jobs.sync.sources.base import BaseConnector

PLANLAMA_HEADERS = [
    "ID", "Tarih", "Saat", "Tekne Adı", "Adres", "Yer",
    "Servis Açıklaması", "İrtibat Kişi", "Telefon", "Durum",
]
PERSONEL_HEADERS = [
    "ID", "Ad Soyad", "Unvan", "Rol", "Aktif", "Giriş Yılı", "Telefon", "E-posta", "Adres", "Notlar",
]
TEKNELER_HEADERS = [
    "ID", "Tekne Adı", "Seri No", "Marka", "Model", "Boy", "Motor Tipi", "Motor Seri No",
    "Yıl", "Renk", "Mülkiyet", "Adres", "Telefon", "E-posta", "Notlar", "Aktif",
]


def service_row(ext_id, date="03.02.2026", status="RANDEVU VERİLDİ", vessel="Mavi Yol",
                address="Yatmarin Marina", location="Yatmarin", description="Motor bakımı",
                time="09:30", contact="Ali Kaya", phone="0532 111 22 33"):
    return [ext_id, date, time, vessel, address, location, description, contact, phone, status]


class FakeConnector(BaseConnector):
    """In-memory sheets keyed by worksheet name."""

    def __init__(self):
        self.sheets: dict[str, list[list]] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def set_sheet(self, name, headers, rows):
        self.sheets[name] = [list(headers)] + [list(r) for r in rows]

    def fetch_values(self, a1_range):
        self.calls.append(a1_range)
        name = a1_range.split("!", 1)[0]
        if name in self.failing:
            raise UpstreamFetchError(f"HTTP 503 reading {a1_range}")
        return [list(r) for r in self.sheets.get(name, [])]
