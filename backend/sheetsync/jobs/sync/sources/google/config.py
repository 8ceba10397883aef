import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetsConfig:
    base_url: str
    spreadsheet_id: str

    service_account_email: str
    private_key: str

    connect_timeout: float
    read_timeout: float

    retries: int
    backoff_base: float


def _read_key_file(path_value: str) -> tuple[str, str]:
    candidates = [Path(path_value), Path.cwd() / path_value, Path.cwd().parent / path_value]
    for candidate in candidates:
        try:
            data = json.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            continue
        if data.get("client_email") or data.get("private_key"):
            logger.info("Google credentials loaded from %s", candidate)
            return data.get("client_email") or "", data.get("private_key") or ""

    logger.error("Could not read GOOGLE_SERVICE_ACCOUNT_JSON from any of %s", [str(c) for c in candidates])
    return "", ""


def load_config() -> Optional[SheetsConfig]:
    """
    Returns None when credentials are missing: the sync is then unavailable,
    which callers report instead of failing.
    """
    email = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
    private_key = os.getenv("GOOGLE_PRIVATE_KEY", "")
    spreadsheet_id = os.getenv("GOOGLE_SPREADSHEET_ID") or os.getenv("GOOGLE_SHEETS_ID") or ""

    key_file = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
    if (not email or not private_key) and key_file:
        file_email, file_key = _read_key_file(key_file)
        email = email or file_email
        private_key = private_key or file_key

    if not email or not private_key or not spreadsheet_id:
        logger.warning(
            "Google Sheets credentials not configured has_email=%s has_private_key=%s has_spreadsheet_id=%s",
            bool(email),
            bool(private_key),
            bool(spreadsheet_id),
        )
        return None

    return SheetsConfig(
        base_url=os.getenv("SHEETS_BASE_URL", "https://sheets.googleapis.com/v4"),
        spreadsheet_id=spreadsheet_id,
        service_account_email=email,
        # keys pasted into .env files keep their newlines escaped
        private_key=private_key.replace("\\n", "\n"),
        connect_timeout=float(os.getenv("SHEETS_CONNECT_TIMEOUT_SECONDS", "10")),
        read_timeout=float(os.getenv("SHEETS_READ_TIMEOUT_SECONDS", "60")),
        retries=int(os.getenv("SHEETS_RETRIES", "4")),
        backoff_base=float(os.getenv("SHEETS_BACKOFF_BASE_SECONDS", "1.0")),
    )
