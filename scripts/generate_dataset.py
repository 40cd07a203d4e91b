"""
Synthetic Olist Dataset Generator
Writes an Olist-shaped snapshot as CSV files, optionally seeding a database too.
"""

import argparse
from pathlib import Path

from src.config.logging import configure_logging
from src.data import SnapshotGenerator, write_snapshot_csv
from src.database.connection import close_database, init_database
from src.ingestion import seed_snapshot

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "raw"


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic Olist snapshot")
    parser.add_argument("--orders", type=int, default=100000, help="Number of orders (default: 100000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--output-dir", default=str(OUTPUT_DIR), help="CSV output directory")
    parser.add_argument("--database-url", help="Also seed this database (SQLAlchemy URL)")
    args = parser.parse_args()

    configure_logging(log_format="console")

    print("=" * 60)
    print("Synthetic Olist Dataset Generator")
    print("=" * 60 + "\n")

    snapshot = SnapshotGenerator(seed=args.seed).generate(n_orders=args.orders)
    paths = write_snapshot_csv(snapshot, args.output_dir)

    if args.database_url:
        engine = init_database(url=args.database_url, create_tables=True)
        try:
            seed_snapshot(snapshot, engine)
        finally:
            close_database()

    print(f"\nOutput: {args.output_dir}\n")
    total = 0
    for collection, path in paths.items():
        rows = snapshot.frame(collection).height
        size = path.stat().st_size / 1024 / 1024
        total += rows
        print(f"   {path.name}: {rows:,} rows ({size:.2f} MB)")

    print(f"\nTotal: {total:,} rows")


if __name__ == "__main__":
    main()
