import logging
from typing import Callable, Generator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from sheetsync.core.config import Settings, load_settings
from sheetsync.core.db import SessionLocal
from sheetsync.jobs.sync.manager import SyncManager
from sheetsync.jobs.sync.sources.base import BaseConnector
from sheetsync.jobs.sync.sources.google.source import create_connector
from sheetsync.jobs.sync.tracker import LAST_RUN, LastRunStore
from sheetsync.jobs.sync.utils.mappers import UserRole, role_to_canonical

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return load_settings()


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_db(session_factory: Callable[[], Session] = Depends(get_session_factory)) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_last_run_store() -> LastRunStore:
    return LAST_RUN


def get_connector() -> Optional[BaseConnector]:
    return create_connector()


def get_sync_manager(
    connector: Optional[BaseConnector] = Depends(get_connector),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    last_run_store: LastRunStore = Depends(get_last_run_store),
) -> Optional[SyncManager]:
    """None when the sheet credentials are not configured."""
    if connector is None:
        return None
    return SyncManager(connector, session_factory, last_run_store=last_run_store)


def require_role(*allowed: UserRole):
    """
    Role gate on the X-User-Role header, which the authenticating gateway in
    front of this service sets.
    """

    def dependency(x_user_role: Optional[str] = Header(None)) -> UserRole:
        if not x_user_role:
            raise HTTPException(status_code=401, detail="Missing X-User-Role header")
        role = role_to_canonical(x_user_role)
        if role not in allowed:
            raise HTTPException(status_code=403, detail=f"Role {role.value} may not do this")
        return role

    return dependency


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if settings.app_env == "development":
        return
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        logger.warning("Cron trigger rejected: bad or missing bearer token")
        raise HTTPException(status_code=401, detail="Unauthorized")
