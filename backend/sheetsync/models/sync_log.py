import uuid
from sqlalchemy import Column, DateTime, Integer, Text, Uuid
from sqlalchemy.sql import func
from sheetsync.core.db import Base

class SyncLog(Base):
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Uuid(as_uuid=True), nullable=False, index=True, default=uuid.uuid4)

    sheet_name = Column(Text, nullable=False, index=True)
    sync_type = Column(Text, nullable=False)   # FULL / INCREMENTAL
    status = Column(Text, nullable=False, index=True)   # SUCCESS / PARTIAL / FAILED

    records_created = Column(Integer, nullable=False, default=0)
    records_updated = Column(Integer, nullable=False, default=0)
    records_deleted = Column(Integer, nullable=False, default=0)
    records_skipped = Column(Integer, nullable=False, default=0)
    duration_ms = Column(Integer, nullable=False, default=0)

    # JSON-encoded list of {row_ref, message, kind}
    errors = Column(Text, nullable=False, default="[]")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
