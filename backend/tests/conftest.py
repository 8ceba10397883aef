import os

# Keep the module-level engine off the working directory.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sheetsync.core.db import init_db
from sheetsync.jobs.sync.manager import SheetLocks, SyncManager
from sheetsync.jobs.sync.tracker import LastRunStore

from sheet_fixtures import PLANLAMA_HEADERS, FakeConnector


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def last_run_store():
    return LastRunStore()


@pytest.fixture
def manager(connector, session_factory, last_run_store):
    return SyncManager(connector, session_factory, last_run_store=last_run_store, locks=SheetLocks())


@pytest.fixture
def planlama(connector):
    """Replace the DB_Planlama sheet contents."""

    def _set(rows, headers=PLANLAMA_HEADERS):
        connector.set_sheet("DB_Planlama", headers, rows)

    return _set
