"""
Run bookkeeping: one sync_logs row per sheet run, plus an in-process snapshot
of the most recent run for cheap status polling.
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sheetsync.jobs.sync.types import RunSummary, SyncResult
from sheetsync.models.sync_log import SyncLog

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class LastRunStore:
    """
    Holds the last RunSummary. Readers always see a complete snapshot:
    writers swap the whole object under the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._summary: Optional[RunSummary] = None

    def get(self) -> Optional[RunSummary]:
        with self._lock:
            return self._summary

    def set(self, summary: RunSummary) -> None:
        with self._lock:
            self._summary = summary

    def clear(self) -> None:
        with self._lock:
            self._summary = None


# Process-wide default, shared by every SyncManager that isn't handed its own.
LAST_RUN = LastRunStore()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back naive; everything we write is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RunTracker:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def record(self, result: SyncResult) -> Optional[int]:
        """
        Append a sync_logs row for one sheet run. A failure here is logged and
        swallowed: the sync itself already happened and its result stands.
        """
        db = self.session_factory()
        try:
            entry = SyncLog(
                run_id=uuid.UUID(result.run_id),
                sheet_name=result.sheet_name,
                sync_type=result.mode.sync_type,
                status=result.status.value,
                records_created=result.created,
                records_updated=result.updated,
                records_deleted=result.deleted,
                records_skipped=result.skipped,
                duration_ms=result.duration_ms,
                errors=json.dumps([e.to_dict() for e in result.errors], ensure_ascii=False),
                created_at=datetime.now(timezone.utc),
            )
            db.add(entry)
            db.commit()
            return entry.id
        except (SQLAlchemyError, ValueError):
            db.rollback()
            logger.exception("Failed to write sync log run_id=%s sheet=%s", result.run_id, result.sheet_name)
            return None
        finally:
            db.close()


def recent_logs(db: Session, limit: int = 10, sheet_name: Optional[str] = None) -> list[SyncLog]:
    stmt = select(SyncLog)
    if sheet_name:
        stmt = stmt.where(SyncLog.sheet_name == sheet_name)
    stmt = stmt.order_by(SyncLog.created_at.desc(), SyncLog.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars())


def decode_errors(entry: SyncLog) -> list[dict]:
    try:
        data = json.loads(entry.errors or "[]")
    except json.JSONDecodeError:
        logger.warning("Unreadable errors column on sync log id=%s", entry.id)
        return []
    return data if isinstance(data, list) else []
