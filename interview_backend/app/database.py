# interview_backend/app/database.py
from contextlib import contextmanager
import logging
import time
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings

logging.basicConfig()
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DB_URL = getattr(settings, "db_url", None) or getattr(settings, "DATABASE_URL", None)
if not DB_URL:
    raise RuntimeError("DATABASE_URL is not configured")

IS_SQLITE = DB_URL.startswith("sqlite")


def _engine_kwargs(url: str) -> Dict[str, Any]:
    if IS_SQLITE:
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}, "future": True}
        # in-memory DB must be shared between threads (TestClient, clock loop)
        if url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "future": True,
        "connect_args": {"connect_timeout": 10, "options": "-c timezone=utc"},
    }


engine = create_engine(DB_URL, **_engine_kwargs(DB_URL))
if getattr(settings, "DEBUG", False):
    engine.echo = True

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()
Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

if not IS_SQLITE:
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("SET statement_timeout = '30s'")
        cur.close()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_database():
    """Create tables (Alembic owns the schema in deployed environments)."""
    try:
        from interview_backend.app.models import candidate  # noqa: F401

        logger.info("Creating tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Database initialized")
        check_database_connection()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def check_database_connection() -> bool:
    for attempt in range(3):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
                logger.info("✓ Database connection OK")
                return True
        except Exception as e:
            logger.warning(f"Database connection attempt {attempt+1}/3 failed: {e}")
            time.sleep(2)
    logger.error("✗ Could not connect to the database")
    return False


__all__ = ["engine", "SessionLocal", "Base", "get_db", "get_db_session",
           "init_database", "check_database_connection"]
