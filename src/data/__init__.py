"""
Data Generation Module
"""
from .generators import SnapshotGenerator, write_snapshot_csv

__all__ = [
    "SnapshotGenerator",
    "write_snapshot_csv",
]
