"""Engine and session factory for the API process and the CLI."""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def _engine_options(database_url: str) -> dict:
    backend = make_url(database_url).get_backend_name()
    if backend.startswith("postgresql"):
        return {
            "pool_pre_ping": True,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "connect_args": {"options": "-c timezone=utc"},
        }
    if backend == "sqlite":
        # Sync endpoints run on worker threads.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
