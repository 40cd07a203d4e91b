"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_engine
from .models import Base, TABLE_MODELS

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "Base",
    "TABLE_MODELS",
]
