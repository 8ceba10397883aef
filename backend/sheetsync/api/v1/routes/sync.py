import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sheetsync.api.v1.routes.common import credentials_missing_response, run_payload
from sheetsync.api.v1.schemas.sync import (
    CronHealthOut,
    FullResetRequest,
    FullResetResponse,
    FullResetSummaryOut,
    LastRunOut,
    StatusCountsOut,
    SyncLogOut,
    SyncRequest,
    SyncRunResponse,
    SyncStatusResponse,
)
from sheetsync.core.config import Settings
from sheetsync.core.deps import get_db, get_last_run_store, get_settings, get_sync_manager, require_role
from sheetsync.jobs.sync.errors import UpstreamFetchError
from sheetsync.jobs.sync.manager import DEFAULT_SAMPLE_LIMIT, SyncManager
from sheetsync.jobs.sync.registry import PRIMARY_SHEET_KEY, is_registered
from sheetsync.jobs.sync.tracker import LastRunStore, as_utc, decode_errors, recent_logs
from sheetsync.jobs.sync.types import SyncMode
from sheetsync.jobs.sync.utils.mappers import UserRole
from sheetsync.models.service import Service
from sheetsync.models.sync_log import SyncLog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["sync"])

any_staff = require_role(UserRole.ADMIN, UserRole.YETKILI)
admin_only = require_role(UserRole.ADMIN)


def _run(manager: SyncManager, sheet: Optional[str], mode: SyncMode) -> dict:
    started_at = datetime.now(timezone.utc)
    if is_registered(sheet):
        results = {sheet: manager.sync_sheet(sheet, mode)}
    else:
        results = manager.sync_all(mode)
    return run_payload(manager, mode, started_at, results)


@router.get("/sync", response_model=SyncRunResponse, dependencies=[Depends(any_staff)])
def trigger_sync(
    sheet: Optional[str] = Query(None, description="Registered sheet key; omit to sync every sheet"),
    mode: Optional[str] = Query(None, description="incremental (default) or full_reset"),
    manager: Optional[SyncManager] = Depends(get_sync_manager),
):
    if manager is None:
        return credentials_missing_response()
    return _run(manager, sheet, SyncMode.lenient(mode))


@router.post("/sync", response_model=SyncRunResponse, dependencies=[Depends(admin_only)])
def trigger_sync_post(
    body: Optional[SyncRequest] = Body(None),
    manager: Optional[SyncManager] = Depends(get_sync_manager),
):
    if manager is None:
        return credentials_missing_response()
    body = body or SyncRequest()
    return _run(manager, body.sheet, SyncMode.lenient(body.mode))


@router.post("/sync/full-reset", response_model=FullResetResponse, dependencies=[Depends(admin_only)])
def full_reset(
    body: Optional[FullResetRequest] = Body(None),
    manager: Optional[SyncManager] = Depends(get_sync_manager),
    db: Session = Depends(get_db),
):
    if body is None or body.confirm is not True:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Full reset deletes and rebuilds the service records; confirm=true is required.",
                "hint": 'Body: { "confirm": true }',
            },
        )
    if manager is None:
        return credentials_missing_response()

    before = db.execute(
        select(func.count()).select_from(Service).where(Service.deleted_at.is_(None))
    ).scalar_one()

    started_at = datetime.now(timezone.utc)
    result = manager.sync_sheet(PRIMARY_SHEET_KEY, SyncMode.FULL_RESET)
    payload = run_payload(manager, SyncMode.FULL_RESET, started_at, {PRIMARY_SHEET_KEY: result})
    payload["sheet"] = PRIMARY_SHEET_KEY
    payload["summary"] = FullResetSummaryOut(
        services_before_reset=before,
        services_deleted=result.deleted,
        services_imported=result.created,
    )
    return payload


def _log_out(entry: SyncLog) -> SyncLogOut:
    return SyncLogOut(
        id=entry.id,
        run_id=entry.run_id,
        sheet_name=entry.sheet_name,
        sync_type=entry.sync_type,
        status=entry.status,
        records_created=entry.records_created,
        records_updated=entry.records_updated,
        records_deleted=entry.records_deleted,
        records_skipped=entry.records_skipped,
        duration_ms=entry.duration_ms,
        errors=decode_errors(entry),
        created_at=as_utc(entry.created_at),
    )


@router.get("/sync/status", response_model=SyncStatusResponse, dependencies=[Depends(any_staff)])
def sync_status(
    db: Session = Depends(get_db),
    last_run_store: LastRunStore = Depends(get_last_run_store),
    settings: Settings = Depends(get_settings),
):
    logs = [_log_out(e) for e in recent_logs(db, limit=settings.status_recent_logs)]
    now = datetime.now(timezone.utc)

    latest = logs[0] if logs else None
    latest_success = next((log for log in logs if log.status in ("SUCCESS", "PARTIAL")), None)

    minutes_since = None
    if latest is not None:
        minutes_since = int((now - latest.created_at) // timedelta(minutes=1))

    threshold = settings.stale_threshold_minutes
    last_run = last_run_store.get()

    return SyncStatusResponse(
        last_run=LastRunOut(**last_run.to_dict()) if last_run else None,
        latest_success=latest_success,
        recent_logs=logs,
        cron_health=CronHealthOut(
            has_run=latest is not None,
            stale_threshold_minutes=threshold,
            minutes_since_last_run=minutes_since,
            is_stale=minutes_since is None or minutes_since > threshold,
            latest_status=latest.status if latest else None,
            latest_run_at=latest.created_at if latest else None,
        ),
        summary=StatusCountsOut(
            recent_runs=len(logs),
            success_count=sum(1 for log in logs if log.status == "SUCCESS"),
            partial_count=sum(1 for log in logs if log.status == "PARTIAL"),
            failed_count=sum(1 for log in logs if log.status == "FAILED"),
        ),
        checked_at=now,
    )


@router.get("/sync/validate", dependencies=[Depends(any_staff)])
def validate_store(
    sample_limit: int = Query(DEFAULT_SAMPLE_LIMIT, alias="sampleLimit"),
    include_all: Optional[str] = Query(None, alias="includeAll"),
    manager: Optional[SyncManager] = Depends(get_sync_manager),
):
    if manager is None:
        return credentials_missing_response()

    try:
        report = manager.validate_against_store(
            sample_limit=sample_limit,
            include_all_samples=include_all == "1",
        )
    except UpstreamFetchError as e:
        logger.error("Validation fetch failed: %s", e)
        return JSONResponse(status_code=502, content={"error": "Sheet could not be read", "details": str(e)})

    if not report["ok"]:
        return JSONResponse(status_code=409, content=report)
    return report
