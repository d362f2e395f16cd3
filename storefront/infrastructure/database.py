import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Creates the SQLAlchemy engine for DATABASE_URL.
    SQLite is shared between the request threads; in-memory SQLite needs a
    single static connection or every session would see an empty database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, future=True, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, future=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def init_db(engine: Engine, retries: int = 10, wait_seconds: float = 3.0) -> bool:
    """
    Creates the tables, retrying while the database is still starting up.
    Returns False when every attempt failed; the app then starts degraded.
    """
    # Import here so every model is registered on Base
    from storefront.domain import models  # noqa: F401

    for attempt in range(retries):
        try:
            logger.info(f"🔄 Attempting DB connection ({attempt + 1}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ DB connected and tables created.")
            return True
        except OperationalError as e:
            logger.warning(f"⚠️ DB not ready yet ({e.orig}). Waiting {wait_seconds}s...")
            time.sleep(wait_seconds)

    logger.error("❌ Could not connect to DB after retries.")
    return False
