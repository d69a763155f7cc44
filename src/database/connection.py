import logging
import time
from typing import Optional

import sqlalchemy as sa

from config.config import get_settings


LOG = logging.getLogger("f1_ingest.database")


def get_engine(database_url: Optional[str] = None) -> sa.Engine:
    """Create a SQLAlchemy engine using environment-driven settings."""
    if database_url is None:
        database_url = get_settings().database_url
    if not database_url:
        raise ValueError("DATABASE_URL is required")
    return sa.create_engine(database_url, future=True)


def wait_for_database(engine: sa.Engine, attempts: int = 10, interval: float = 3.0) -> bool:
    """Poll the store until a connection succeeds or the attempts run out."""
    for remaining in range(attempts, 0, -1):
        try:
            with engine.connect() as conn:
                conn.execute(sa.text("SELECT 1"))
            LOG.info("Connected to database")
            return True
        except sa.exc.SQLAlchemyError as exc:
            LOG.warning("Waiting for database (%s attempts left): %s", remaining, exc)
            if remaining > 1:
                time.sleep(interval)
    return False
