"""
Snapshot Ingestion Module
"""
from .sources import (
    CsvDataSource,
    DatabaseDataSource,
    DataSource,
    InMemoryDataSource,
    Snapshot,
    normalize_frame,
)
from .seed_db import seed_snapshot

__all__ = [
    "CsvDataSource",
    "DatabaseDataSource",
    "DataSource",
    "InMemoryDataSource",
    "Snapshot",
    "normalize_frame",
    "seed_snapshot",
]
