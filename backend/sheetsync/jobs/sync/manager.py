"""
Sheet -> store reconciliation.

One run per sheet: fetch -> parse -> per-row create/update (each row its own
transaction) -> sync_logs row -> last-run snapshot. Row failures are recorded
and the batch carries on; only fetch and header-layout failures fail a run.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sheetsync.jobs.sync.errors import ColumnLayoutError, UnknownSheetError, UpstreamFetchError
from sheetsync.jobs.sync.registry import PRIMARY_SHEET_KEY, SHEETS, SheetConfig, get_sheet_config
from sheetsync.jobs.sync.rows import parse_values
from sheetsync.jobs.sync.sources.base import BaseConnector
from sheetsync.jobs.sync.tracker import LAST_RUN, LastRunStore, RunTracker
from sheetsync.jobs.sync.types import (
    CanonicalRecord,
    CanonicalServiceRecord,
    ParsedRow,
    RowError,
    RunStatus,
    RunSummary,
    RunTotals,
    SyncMode,
    SyncResult,
)
from sheetsync.jobs.sync.utils.dates import to_iso_date_only
from sheetsync.jobs.sync.utils.mappers import location_group, normalize_location_text, status_to_display
from sheetsync.models.personnel import Personnel
from sheetsync.models.service import Service
from sheetsync.models.vessel import Vessel

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

ENTITY_MODELS = {
    "service": Service,
    "personnel": Personnel,
    "vessel": Vessel,
}

SHEET_SOURCE = "sheet"

DEFAULT_SAMPLE_LIMIT = 50
MAX_SAMPLE_LIMIT = 500

VALIDATED_FIELDS = (
    "service_date",
    "service_time",
    "vessel_name",
    "address",
    "location",
    "description",
    "contact_name",
    "contact_phone",
    "status",
)
CRITICAL_FIELDS = frozenset({"service_date", "address", "location", "status"})


class SheetLocks:
    """One lock per sheet key: a second run on the same sheet waits for the first."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, sheet_key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(sheet_key)
            if lock is None:
                lock = self._locks[sheet_key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, sheet_key: str) -> Iterator[None]:
        lock = self._lock_for(sheet_key)
        if not lock.acquire(blocking=False):
            logger.info("Sheet %s is already syncing, waiting", sheet_key)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()


SHEET_LOCKS = SheetLocks()


def clamp_sample_limit(sample_limit: Optional[int]) -> int:
    if sample_limit is None:
        return DEFAULT_SAMPLE_LIMIT
    return max(1, min(int(sample_limit), MAX_SAMPLE_LIMIT))


def normalize_run_id(run_id: Optional[str]) -> str:
    if run_id is None:
        return str(uuid.uuid4())
    try:
        return str(uuid.UUID(str(run_id)))
    except ValueError:
        derived = str(uuid.uuid5(uuid.NAMESPACE_URL, f"sheetsync:{run_id}"))
        logger.warning("run_id %r is not a UUID, logging it as %s", run_id, derived)
        return derived


def record_values(cfg: SheetConfig, record: CanonicalRecord) -> dict[str, Any]:
    """Column values a canonical record writes, including the sheet provenance."""
    values = dataclasses.asdict(record)
    if isinstance(record, CanonicalServiceRecord):
        values["location_group"] = location_group(record.location, record.address).value
    values["source"] = SHEET_SOURCE
    values["source_sheet"] = cfg.key
    return values


def changed_fields(row: Any, values: dict[str, Any]) -> list[str]:
    return [name for name, value in values.items() if getattr(row, name) != value]


def _run_status(result: SyncResult, written: int) -> RunStatus:
    # written counts rows that reached the store; status-filtered rows never do
    if not result.errors:
        return RunStatus.SUCCESS
    if written > 0:
        return RunStatus.PARTIAL
    return RunStatus.FAILED


class SyncManager:
    def __init__(
        self,
        connector: BaseConnector,
        session_factory: SessionFactory,
        last_run_store: Optional[LastRunStore] = None,
        locks: Optional[SheetLocks] = None,
    ):
        self.connector = connector
        self.session_factory = session_factory
        self.last_run = last_run_store if last_run_store is not None else LAST_RUN
        self.locks = locks if locks is not None else SHEET_LOCKS
        self.tracker = RunTracker(session_factory)

    def get_last_run(self) -> Optional[RunSummary]:
        return self.last_run.get()

    # --- runs ---

    def sync_sheet(
        self,
        sheet_key: str,
        mode: Union[SyncMode, str] = SyncMode.INCREMENTAL,
        run_id: Optional[str] = None,
    ) -> SyncResult:
        """
        Sync one registered sheet. Never raises for fetch, layout or row
        problems: those come back in the result.

        A caller-supplied run_id that is not a UUID is mapped onto a stable
        UUID so sync_logs can still store it.
        """
        mode = SyncMode(mode)
        run_id = normalize_run_id(run_id)
        started_at = datetime.now(timezone.utc)
        self.last_run.set(RunSummary(run_id=run_id, mode=mode, started_at=started_at))

        results: dict[str, SyncResult] = {}
        try:
            results[sheet_key] = self._sync_one(sheet_key, mode, run_id)
        finally:
            self.last_run.set(self.summarize(run_id, mode, started_at, results))
        return results[sheet_key]

    def sync_all(self, mode: Union[SyncMode, str] = SyncMode.INCREMENTAL) -> dict[str, SyncResult]:
        mode = SyncMode(mode)
        run_id = str(uuid.uuid4())
        started_at = datetime.now(timezone.utc)
        self.last_run.set(RunSummary(run_id=run_id, mode=mode, started_at=started_at))

        logger.info("Sync all start run_id=%s mode=%s sheets=%s", run_id, mode.value, list(SHEETS))
        results: dict[str, SyncResult] = {}
        try:
            for sheet_key in SHEETS:
                results[sheet_key] = self._sync_one(sheet_key, mode, run_id)
        finally:
            summary = self.summarize(run_id, mode, started_at, results)
            self.last_run.set(summary)

        logger.info(
            "Sync all done run_id=%s success=%s totals=%s",
            run_id,
            summary.success,
            summary.totals,
        )
        return results

    def summarize(
        self,
        run_id: str,
        mode: SyncMode,
        started_at: datetime,
        results: dict[str, SyncResult],
    ) -> RunSummary:
        totals = RunTotals.from_results(list(results.values()))
        errors = tuple(
            {"sheet": sheet_key, "row_ref": e.row_ref, "message": e.message}
            for sheet_key, r in results.items()
            for e in r.errors
        )
        return RunSummary(
            run_id=run_id,
            mode=mode,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            success=bool(results) and totals.errors == 0 and all(r.success for r in results.values()),
            totals=totals,
            errors=errors,
        )

    def _sync_one(self, sheet_key: str, mode: SyncMode, run_id: str) -> SyncResult:
        t0 = time.perf_counter()
        try:
            cfg = get_sheet_config(sheet_key)
        except UnknownSheetError as e:
            result = SyncResult(sheet_key=sheet_key, sheet_name=sheet_key, mode=mode, run_id=run_id)
            result.errors.append(RowError(row_ref=None, message=str(e), kind="CONFIG"))
            result.duration_ms = int((time.perf_counter() - t0) * 1000)
            logger.error("Sync refused run_id=%s: %s", run_id, e)
            return result

        with self.locks.hold(cfg.key):
            logger.info("Sync start run_id=%s sheet=%s mode=%s", run_id, cfg.key, mode.value)
            try:
                result = self._run(cfg, mode, run_id)
            except Exception as e:
                logger.exception("Sync crashed run_id=%s sheet=%s", run_id, cfg.key)
                result = SyncResult(sheet_key=cfg.key, sheet_name=cfg.sheet_name, mode=mode, run_id=run_id)
                result.errors.append(RowError(row_ref=None, message=f"{e.__class__.__name__}: {e}", kind="SYNC_ERROR"))
            result.duration_ms = int((time.perf_counter() - t0) * 1000)
            self.tracker.record(result)

        logger.info(
            "Sync done run_id=%s sheet=%s status=%s created=%d updated=%d deleted=%d skipped=%d "
            "unchanged=%d errors=%d duration_ms=%d",
            run_id,
            cfg.key,
            result.status.value,
            result.created,
            result.updated,
            result.deleted,
            result.skipped,
            result.unchanged,
            len(result.errors),
            result.duration_ms,
        )
        return result

    def _run(self, cfg: SheetConfig, mode: SyncMode, run_id: str) -> SyncResult:
        result = SyncResult(sheet_key=cfg.key, sheet_name=cfg.sheet_name, mode=mode, run_id=run_id)

        try:
            values = self.connector.fetch_values(cfg.a1_range)
        except UpstreamFetchError as e:
            logger.error("Fetch failed run_id=%s sheet=%s: %s", run_id, cfg.key, e)
            result.errors.append(RowError(row_ref=None, message=str(e), kind="FETCH"))
            return result

        try:
            outcomes, header_warnings = parse_values(cfg, values)
        except ColumnLayoutError as e:
            logger.error("Column layout changed run_id=%s sheet=%s: %s", run_id, cfg.key, e)
            result.errors.extend(RowError(row_ref=None, message=p, kind="LAYOUT") for p in e.problems)
            result.skipped = max(len(values) - 1, 0)
            return result

        result.warnings.extend(header_warnings)
        model = ENTITY_MODELS[cfg.entity]

        if mode is SyncMode.FULL_RESET:
            try:
                result.deleted = self._soft_delete_scope(cfg, model)
            except SQLAlchemyError as e:
                logger.exception("Full reset delete failed run_id=%s sheet=%s", run_id, cfg.key)
                result.errors.append(RowError(row_ref=None, message=f"soft delete failed: {e}", kind="PERSISTENCE"))
                return result

        written = 0
        for outcome in outcomes:
            if isinstance(outcome, RowError):
                logger.warning("Row rejected run_id=%s %s: %s", run_id, outcome.row_ref, outcome.message)
                result.errors.append(outcome)
                result.skipped += 1
                continue

            result.warnings.extend(f"{outcome.row_ref} {w}" for w in outcome.warnings)
            if outcome.skip_reason:
                result.skipped += 1
                continue

            applied = self._apply_row(cfg, model, outcome, mode)
            if isinstance(applied, RowError):
                result.errors.append(applied)
                result.skipped += 1
                continue

            written += 1
            if applied == "created":
                result.created += 1
            elif applied == "updated":
                result.updated += 1
            else:
                result.unchanged += 1

        result.status = _run_status(result, written)
        result.success = result.status is RunStatus.SUCCESS
        return result

    def _soft_delete_scope(self, cfg: SheetConfig, model: Any) -> int:
        db = self.session_factory()
        try:
            res = db.execute(
                update(model)
                .where(
                    model.source == SHEET_SOURCE,
                    model.source_sheet == cfg.key,
                    model.deleted_at.is_(None),
                )
                .values(deleted_at=datetime.now(timezone.utc))
            )
            db.commit()
            logger.info("Soft-deleted %d %s rows for sheet %s", res.rowcount, cfg.entity, cfg.key)
            return res.rowcount or 0
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def _apply_row(self, cfg: SheetConfig, model: Any, row: ParsedRow, mode: SyncMode) -> Union[str, RowError]:
        """create / update / unchanged for one row, committed on its own."""
        values = record_values(cfg, row.record)
        db = self.session_factory()
        try:
            existing = db.execute(
                select(model).where(model.external_id == row.record.external_id)
            ).scalars().first()

            if existing is None:
                db.add(model(**values))
                action = "created"
            elif existing.deleted_at is not None:
                for name, value in values.items():
                    setattr(existing, name, value)
                existing.deleted_at = None
                action = "created" if mode is SyncMode.FULL_RESET else "updated"
            else:
                diff = changed_fields(existing, values)
                if not diff:
                    return "unchanged"
                for name in diff:
                    setattr(existing, name, values[name])
                logger.debug("Updating %s fields=%s", row.row_ref, diff)
                action = "updated"

            db.commit()
            return action
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Row write failed %s", row.row_ref)
            return RowError(row_ref=row.row_ref, message=f"store write failed: {e.__class__.__name__}", kind="PERSISTENCE")
        finally:
            db.close()

    # --- drift check ---

    def validate_against_store(
        self,
        sample_limit: Optional[int] = DEFAULT_SAMPLE_LIMIT,
        include_all_samples: bool = False,
    ) -> dict[str, Any]:
        """
        Re-read the primary sheet and compare it with the live store rows.
        UpstreamFetchError propagates: there is nothing to compare against.
        """
        limit = None if include_all_samples else clamp_sample_limit(sample_limit)
        cfg = get_sheet_config(PRIMARY_SHEET_KEY)
        values = self.connector.fetch_values(cfg.a1_range)

        try:
            outcomes, _ = parse_values(cfg, values)
        except ColumnLayoutError as e:
            return {
                "ok": False,
                "sheet_name": cfg.sheet_name,
                "error": "COLUMN_SHIFT_DETECTED",
                "details": e.problems,
                "headers": e.headers,
            }

        invalid = 0
        skipped_by_status = 0
        rows: list[CanonicalServiceRecord] = []
        for outcome in outcomes:
            if isinstance(outcome, RowError):
                invalid += 1
            elif outcome.skip_reason:
                skipped_by_status += 1
            else:
                rows.append(outcome.record)

        sheet_ids = [r.external_id for r in rows]
        sheet_id_set = set(sheet_ids)
        db = self.session_factory()
        try:
            stored = {
                s.external_id: s
                for s in db.execute(
                    select(Service).where(Service.external_id.in_(sheet_ids), Service.deleted_at.is_(None))
                ).scalars()
            } if sheet_ids else {}

            extra_in_store = [
                ext_id
                for ext_id in db.execute(
                    select(Service.external_id)
                    .where(
                        Service.source == SHEET_SOURCE,
                        Service.source_sheet == cfg.key,
                        Service.deleted_at.is_(None),
                        Service.status.not_in(list(cfg.skip_statuses)),
                    )
                    .order_by(Service.external_id)
                ).scalars()
                if ext_id not in sheet_id_set
            ]
        finally:
            db.close()

        missing_in_store: list[str] = []
        mismatched: list[dict[str, Any]] = []
        mismatch_by_field: dict[str, int] = {}

        for record in rows:
            row = stored.get(record.external_id)
            if row is None:
                missing_in_store.append(record.external_id)
                continue

            sheet_view = self._snapshot(record)
            store_view = self._snapshot(row)
            diffs = [
                {"field": name, "sheet": sheet_view[name], "store": store_view[name]}
                for name in VALIDATED_FIELDS
                if sheet_view[name] != store_view[name]
            ]
            if diffs:
                for d in diffs:
                    mismatch_by_field[d["field"]] = mismatch_by_field.get(d["field"], 0) + 1
                mismatched.append({"external_id": record.external_id, "diffs": diffs})

        critical = sum(1 for m in mismatched if any(d["field"] in CRITICAL_FIELDS for d in m["diffs"]))
        ok = not (missing_in_store or extra_in_store or mismatched)
        if not ok:
            logger.warning(
                "Store drift on %s missing=%d extra=%d mismatched=%d",
                cfg.key,
                len(missing_in_store),
                len(extra_in_store),
                len(mismatched),
            )

        return {
            "ok": ok,
            "sheet_name": cfg.sheet_name,
            "summary": {
                "total_sheet_rows": max(len(values) - 1, 0),
                "effective_sheet_rows": len(rows),
                "store_rows_checked": len(stored),
                "missing_in_store_count": len(missing_in_store),
                "extra_in_store_count": len(extra_in_store),
                "mismatched_count": len(mismatched),
                "skipped_by_status_count": skipped_by_status,
                "invalid_row_count": invalid,
                "critical_mismatch_count": critical,
            },
            "mismatch_by_field": mismatch_by_field,
            "samples": {
                "missing_in_store": missing_in_store[:limit],
                "extra_in_store": extra_in_store[:limit],
                "mismatched": mismatched[:limit],
            },
        }

    @staticmethod
    def _snapshot(row: Any) -> dict[str, Optional[str]]:
        # Both sides rendered the same way so only real differences show up.
        return {
            "service_date": to_iso_date_only(row.service_date),
            "service_time": row.service_time or None,
            "vessel_name": row.vessel_name or "",
            "address": normalize_location_text(row.address),
            "location": normalize_location_text(row.location),
            "description": row.description or "",
            "contact_name": row.contact_name or None,
            "contact_phone": row.contact_phone or None,
            "status": status_to_display(row.status),
        }
