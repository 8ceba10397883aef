import logging
from typing import Any, Generator, Optional
from urllib.parse import quote

import httpx
from google.auth import jwt

from sheetsync.core.logging import configure_logging_if_needed
from sheetsync.jobs.sync.sources.base import BaseConnector

from .config import SheetsConfig, load_config
from .http import get_with_retry, make_client

logger = logging.getLogger(__name__)

SHEETS_AUDIENCE = "https://sheets.googleapis.com/"


class ServiceAccountAuth(httpx.Auth):
    """Self-signed service account JWT, re-signed locally whenever it expires."""

    def __init__(self, cfg: SheetsConfig):
        info = {
            "type": "service_account",
            "client_email": cfg.service_account_email,
            "private_key": cfg.private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        self.credentials = jwt.Credentials.from_service_account_info(info, audience=SHEETS_AUDIENCE)

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if not self.credentials.valid:
            # jwt.Credentials signs in-process; the request argument is unused.
            self.credentials.refresh(None)
        request.headers["Authorization"] = f"Bearer {self.credentials.token}"
        yield request


class GoogleSheetsConnector(BaseConnector):
    """Read-only access to one spreadsheet through the Sheets v4 values API."""

    def __init__(self, cfg: SheetsConfig, auth: Optional[httpx.Auth] = None, transport: Optional[httpx.BaseTransport] = None):
        configure_logging_if_needed()
        self.cfg = cfg
        self.auth = auth if auth is not None else ServiceAccountAuth(cfg)
        self.transport = transport

        logger.info(
            "Sheets configured base_url=%s spreadsheet_id=%s timeouts(connect=%.1f read=%.1f) retries=%d backoff_base=%.2f",
            cfg.base_url,
            cfg.spreadsheet_id,
            cfg.connect_timeout,
            cfg.read_timeout,
            cfg.retries,
            cfg.backoff_base,
        )

    def fetch_values(self, a1_range: str) -> list[list[Any]]:
        path = f"/spreadsheets/{self.cfg.spreadsheet_id}/values/{quote(a1_range, safe='!:')}"
        with make_client(self.cfg, auth=self.auth, transport=self.transport) as client:
            payload = get_with_retry(self.cfg, client, path, params={"valueRenderOption": "FORMATTED_VALUE"})

        values = payload.get("values") or []
        logger.info("Fetched range=%s rows=%d", a1_range, len(values))
        return values


def create_connector() -> Optional[GoogleSheetsConnector]:
    """Connector from the environment, or None when credentials are missing."""
    cfg = load_config()
    if cfg is None:
        return None
    return GoogleSheetsConnector(cfg)
