from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from sheetsync.core.config import load_settings

settings = load_settings()

# SQLite needs check_same_thread off because FastAPI runs sync routes in a threadpool.
_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create any missing tables. Model modules register on Base when imported."""
    from sheetsync.models import personnel, service, sync_log, vessel  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
