"""Create the booking schema on the configured database.

Usage:
    python -m app.db.create_tables
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from app.db import models
from app.db.session import get_engine

logger = logging.getLogger(__name__)


def create_tables(engine: Engine | None = None) -> None:
    engine = engine or get_engine()
    models.Base.metadata.create_all(bind=engine)
    logger.info("db.tables_created", extra={"tables": sorted(models.Base.metadata.tables)})


if __name__ == "__main__":
    create_tables()
    print("Tables created.")
