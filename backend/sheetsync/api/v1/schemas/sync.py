import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sheet: Optional[str] = Field(None, alias="sheetKey", description="Registered sheet key; omit to sync every sheet")
    mode: Optional[str] = Field(None, description="incremental (default) or full_reset")


class FullResetRequest(BaseModel):
    # Must be the JSON literal true; "yes" or 1 do not count.
    confirm: Any = None


class RowErrorOut(BaseModel):
    row_ref: Optional[str] = None
    message: str
    kind: str


class RunErrorOut(BaseModel):
    sheet: str
    row_ref: Optional[str] = None
    message: str


class SheetResultOut(BaseModel):
    sheet_key: str
    sheet_name: str
    mode: str
    run_id: str
    success: bool
    status: str
    created: int
    updated: int
    deleted: int
    skipped: int
    unchanged: int
    errors: list[RowErrorOut]
    warnings: list[str]
    duration_ms: int


class RunTotalsOut(BaseModel):
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0


class SyncRunResponse(BaseModel):
    run_id: str
    mode: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    success: bool
    totals: RunTotalsOut
    results: dict[str, SheetResultOut]
    errors: list[RunErrorOut]


class FullResetSummaryOut(BaseModel):
    services_before_reset: int
    services_deleted: int
    services_imported: int


class FullResetResponse(SyncRunResponse):
    sheet: str
    summary: FullResetSummaryOut


class SyncLogOut(BaseModel):
    id: int
    run_id: uuid.UUID
    sheet_name: str
    sync_type: str
    status: str
    records_created: int
    records_updated: int
    records_deleted: int
    records_skipped: int
    duration_ms: int
    errors: list[dict]
    created_at: datetime


class CronHealthOut(BaseModel):
    has_run: bool
    stale_threshold_minutes: int
    minutes_since_last_run: Optional[int] = None
    is_stale: bool
    latest_status: Optional[str] = None
    latest_run_at: Optional[datetime] = None


class StatusCountsOut(BaseModel):
    recent_runs: int
    success_count: int
    partial_count: int
    failed_count: int


class LastRunOut(BaseModel):
    run_id: str
    mode: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    success: Optional[bool] = None
    totals: Optional[RunTotalsOut] = None
    errors: list[RunErrorOut] = []


class SyncStatusResponse(BaseModel):
    ok: bool = True
    last_run: Optional[LastRunOut] = None
    latest_success: Optional[SyncLogOut] = None
    recent_logs: list[SyncLogOut]
    cron_health: CronHealthOut
    summary: StatusCountsOut
    checked_at: datetime
