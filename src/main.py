"""
Delivery Performance Reports

Batch entry point: load a snapshot, check its quality, build every report,
print and export the results.

Usage:
    delivery-reports --source csv --data-dir data/raw
    delivery-reports --source database --database-url sqlite:///olist.db
    delivery-reports --source synthetic --orders 5000 --format parquet
"""

import argparse
import sys
from typing import Iterable, List, Optional

import structlog

from src.analytics import Aggregator, AnalyticsError
from src.config import Settings, get_settings
from src.config.logging import configure_logging
from src.data import SnapshotGenerator
from src.database.connection import close_database, init_database
from src.ingestion import CsvDataSource, DatabaseDataSource, DataSource, Snapshot
from src.quality import validate_snapshot
from src.reporting import REPORT_NAMES, ReportBuilder, ReportBundle, ReportExporter, render_bundle

logger = structlog.get_logger(__name__)


def run_pipeline(
    snapshot: Snapshot,
    settings: Optional[Settings] = None,
    report_names: Optional[Iterable[str]] = None,
    validate: bool = True,
) -> ReportBundle:
    """
    Build reports for a loaded snapshot.

    Quality findings are logged only; they never stop the run.
    """
    settings = settings or get_settings()

    if validate:
        results = validate_snapshot(snapshot)
        failing = [name for name, r in results.items() if r.status.value != "passed"]
        if failing:
            logger.warning("Snapshot has data quality findings", collections=failing)

    aggregator = Aggregator(snapshot, settings=settings)
    return ReportBuilder(aggregator).build_all(report_names)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Delivery performance and review score reports")
    parser.add_argument(
        "--source",
        choices=["csv", "database", "synthetic"],
        default="csv",
        help="Where to read the snapshot from (default: csv)",
    )
    parser.add_argument("--data-dir", help="Directory with the Olist CSV files")
    parser.add_argument("--database-url", help="SQLAlchemy URL of the snapshot database")
    parser.add_argument("--orders", type=int, default=5000, help="Synthetic orders to generate")
    parser.add_argument("--seed", type=int, default=42, help="Synthetic generator seed")
    parser.add_argument("--output-dir", help="Directory for exported reports")
    parser.add_argument("--format", choices=["csv", "parquet", "json"], help="Export format")
    parser.add_argument("--no-export", action="store_true", help="Print reports without writing files")
    parser.add_argument(
        "--report",
        action="append",
        choices=REPORT_NAMES,
        dest="reports",
        help="Report to build (repeatable; default: all)",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    return parser


def _load_snapshot(args: argparse.Namespace) -> Snapshot:
    if args.source == "synthetic":
        return SnapshotGenerator(seed=args.seed).generate(n_orders=args.orders)

    if args.source == "database":
        engine = init_database(url=args.database_url)
        try:
            return DatabaseDataSource(engine).load()
        finally:
            close_database()

    source: DataSource = CsvDataSource(args.data_dir)
    return source.load()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)
    settings = get_settings()

    try:
        snapshot = _load_snapshot(args)
        bundle = run_pipeline(snapshot, settings=settings, report_names=args.reports)
    except AnalyticsError as e:
        logger.error("Report run aborted", error=str(e), error_type=type(e).__name__)
        return 2

    print(render_bundle(bundle))

    if not args.no_export:
        paths = ReportExporter(args.output_dir, fmt=args.format).export(bundle)
        logger.info("Reports exported", files=len(paths))

    return 1 if bundle.failed else 0


if __name__ == "__main__":
    sys.exit(main())
