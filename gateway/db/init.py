"""Initialize the development schema."""
import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

import gateway.models  # noqa: F401  registers the tables on SQLModel.metadata

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create the development tables that do not exist yet.

    Only meant for SQLite development databases and tests; a production
    store owns its own schema and migrations.
    """
    logger.info("[DB INIT] Creating development tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("[DB INIT] Tables created successfully.")
