"""Database engine configuration for the gateway."""
import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import create_engine

from gateway import config

logger = logging.getLogger(__name__)


def build_engine(database_url: str = config.DATABASE_URL, **kwargs) -> Engine:
    """Create an engine for the store, with SQLite tweaks for local development."""
    if database_url.startswith("postgresql"):
        logger.info("[DB CONFIG] Using PostgreSQL database")
        return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)

    if not database_url.startswith("sqlite"):
        logger.info("[DB CONFIG] Using database from DATABASE_URL")
        return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)

    logger.info(f"[DB CONFIG] Using SQLite database: {database_url}")
    connect_args = kwargs.pop("connect_args", {})
    connect_args.setdefault("check_same_thread", False)
    engine = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine
