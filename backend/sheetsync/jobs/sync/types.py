from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union


class SyncMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL_RESET = "full_reset"

    @classmethod
    def lenient(cls, value: Optional[str]) -> "SyncMode":
        # Anything but an explicit full_reset is an incremental run.
        return cls.FULL_RESET if (value or "").strip().lower() == cls.FULL_RESET.value else cls.INCREMENTAL

    @property
    def sync_type(self) -> str:
        # value stored in sync_logs.sync_type
        return "FULL" if self is SyncMode.FULL_RESET else "INCREMENTAL"


class RunStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CanonicalServiceRecord:
    external_id: str                 # stable join key between sheet and store
    service_date: Optional[date]
    service_time: Optional[str]
    vessel_name: str
    address: str
    location: str
    description: str
    contact_name: Optional[str]
    contact_phone: Optional[str]
    status: str                      # ServiceStatus value, or the unrecognised token


@dataclass(frozen=True)
class CanonicalPersonnelRecord:
    external_id: str
    name: str
    title: str
    role: str
    active: bool
    start_year: Optional[int]
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class CanonicalVesselRecord:
    external_id: str
    name: str
    serial_no: Optional[str]
    brand: Optional[str]
    model: Optional[str]
    length_m: Optional[float]
    engine_type: Optional[str]
    engine_serial_no: Optional[str]
    build_year: Optional[int]
    colour: Optional[str]
    ownership: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    notes: Optional[str]
    active: bool


CanonicalRecord = Union[CanonicalServiceRecord, CanonicalPersonnelRecord, CanonicalVesselRecord]


@dataclass(frozen=True)
class RowError:
    row_ref: Optional[str]
    message: str
    kind: str = "VALIDATION"         # VALIDATION / PERSISTENCE / FETCH / LAYOUT / CONFIG / SYNC_ERROR

    def to_dict(self) -> dict:
        return {"row_ref": self.row_ref, "message": self.message, "kind": self.kind}


@dataclass(frozen=True)
class ParsedRow:
    row_ref: str
    record: CanonicalRecord
    skip_reason: Optional[str] = None        # e.g. "STATUS_FILTERED"
    warnings: tuple[str, ...] = ()


RowOutcome = Union[ParsedRow, RowError]


@dataclass
class SyncResult:
    sheet_key: str
    sheet_name: str
    mode: SyncMode
    run_id: str

    success: bool = False
    status: RunStatus = RunStatus.FAILED
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    unchanged: int = 0
    errors: list[RowError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_key": self.sheet_key,
            "sheet_name": self.sheet_name,
            "mode": self.mode.value,
            "run_id": self.run_id,
            "success": self.success,
            "status": self.status.value,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "skipped": self.skipped,
            "unchanged": self.unchanged,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class RunTotals:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: list[SyncResult]) -> "RunTotals":
        return cls(
            created=sum(r.created for r in results),
            updated=sum(r.updated for r in results),
            deleted=sum(r.deleted for r in results),
            skipped=sum(r.skipped for r in results),
            errors=sum(len(r.errors) for r in results),
        )


@dataclass(frozen=True)
class RunSummary:
    """Snapshot of the most recent run, kept in-process for cheap health polling."""
    run_id: str
    mode: SyncMode
    started_at: datetime
    finished_at: Optional[datetime] = None
    success: Optional[bool] = None
    totals: Optional[RunTotals] = None
    errors: tuple[dict, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "mode": self.mode.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "success": self.success,
            "totals": self.totals.__dict__ if self.totals else None,
            "errors": list(self.errors),
        }
