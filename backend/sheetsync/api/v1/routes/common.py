from datetime import datetime
from typing import Any

from fastapi.responses import JSONResponse

from sheetsync.jobs.sync.manager import SyncManager
from sheetsync.jobs.sync.types import SyncMode, SyncResult

CREDENTIALS_MISSING = "Google Sheets credentials not configured"


def credentials_missing_response() -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": CREDENTIALS_MISSING})


def run_payload(
    manager: SyncManager,
    mode: SyncMode,
    started_at: datetime,
    results: dict[str, SyncResult],
) -> dict[str, Any]:
    run_id = next(iter(results.values())).run_id
    summary = manager.summarize(run_id, mode, started_at, results)
    payload = summary.to_dict()
    payload["results"] = {key: r.to_dict() for key, r in results.items()}
    return payload
