import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from sheetsync.api.v1.routes.common import CREDENTIALS_MISSING, run_payload
from sheetsync.api.v1.schemas.sync import SyncRunResponse
from sheetsync.core.deps import get_sync_manager, verify_cron_secret
from sheetsync.jobs.sync.manager import SyncManager
from sheetsync.jobs.sync.types import SyncMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["cron"])


@router.get("/cron/sync", dependencies=[Depends(verify_cron_secret)])
def cron_sync(
    mode: Optional[str] = Query(None, description="incremental (default) or full_reset"),
    manager: Optional[SyncManager] = Depends(get_sync_manager),
):
    # Missing credentials answer 200: the scheduler should not page anyone for it.
    if manager is None:
        logger.warning("Cron sync skipped: %s", CREDENTIALS_MISSING)
        return {
            "success": False,
            "error": CREDENTIALS_MISSING,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    sync_mode = SyncMode.lenient(mode)
    started_at = datetime.now(timezone.utc)
    results = manager.sync_all(sync_mode)
    return SyncRunResponse(**run_payload(manager, sync_mode, started_at, results))
