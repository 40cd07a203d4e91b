"""
Snapshot Seeding

Writes a snapshot into the relational store so DatabaseDataSource can read
it back. Used to stage the Olist CSV export (or a synthetic snapshot) in
SQLite or PostgreSQL.
"""

from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import delete, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from src.database.connection import get_db, get_engine
from src.database.models import Base, TABLE_MODELS
from src.ingestion.sources import SCHEMAS, Snapshot

logger = structlog.get_logger(__name__)


def execute_batch_insert(session: Session, model: Any, records: List[Dict[str, Any]], chunk_size: int = 1000) -> None:
    """Helper to insert batch of records using Core Insert"""
    if not records:
        return

    for i in range(0, len(records), chunk_size):
        chunk = records[i:i + chunk_size]
        session.execute(insert(model), chunk)

    logger.info(f"Inserted {len(records)} records into {model.__tablename__}")


def seed_snapshot(
    snapshot: Snapshot,
    engine: Optional[Engine] = None,
    replace: bool = True,
    chunk_size: int = 1000,
) -> Dict[str, int]:
    """
    Write every collection of a snapshot into its table.

    Args:
        snapshot: Normalized snapshot to persist
        engine: Target engine; defaults to the initialized global engine
        replace: Delete existing rows first
        chunk_size: Rows per INSERT batch

    Returns:
        Rows written per collection
    """
    engine = engine if engine is not None else get_engine()
    Base.metadata.create_all(engine)

    written = {}
    with get_db(engine) as session:
        for collection in SCHEMAS:
            model = TABLE_MODELS[collection]
            if replace:
                session.execute(delete(model))

            records = snapshot.frame(collection).to_dicts()
            execute_batch_insert(session, model, records, chunk_size=chunk_size)
            written[collection] = len(records)

    logger.info("Snapshot seeded", dialect=engine.dialect.name, **written)
    return written
