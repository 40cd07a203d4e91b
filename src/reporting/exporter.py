"""
Report Export

Writes report bundles to the curated zone (one file per report plus a
summary manifest) and renders them as console tables.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import polars as pl
import structlog

from src.config import get_settings
from .builder import Report, ReportBundle, ReportStatus

logger = structlog.get_logger(__name__)

EXTENSIONS = {"csv": "csv", "parquet": "parquet", "json": "json"}


def _writable(df: pl.DataFrame) -> pl.DataFrame:
    # All-null columns have no concrete type; store them as strings
    null_cols = [c for c, dtype in df.schema.items() if dtype == pl.Null]
    if not null_cols:
        return df
    return df.with_columns([pl.col(c).cast(pl.Utf8) for c in null_cols])


class ReportExporter:
    """
    Writes every non-failed report of a bundle to disk.

    Example:
        paths = ReportExporter("data/reports", fmt="parquet").export(bundle)
    """

    def __init__(self, output_path: Optional[Union[str, Path]] = None, fmt: Optional[str] = None):
        settings = get_settings()
        self.app_name = settings.app_name
        self.version = settings.version
        self.output_path = Path(output_path or settings.data_lake.curated_path)
        self.fmt = (fmt or settings.data_lake.default_format).lower()
        if self.fmt not in EXTENSIONS:
            raise ValueError(f"Unsupported export format: {self.fmt}")

    def _write_output(self, df: pl.DataFrame, name: str, timestamp: str) -> str:
        """Write one report frame"""
        output_file = self.output_path / f"{name}_{timestamp}.{EXTENSIONS[self.fmt]}"
        df = _writable(df)

        if self.fmt == "csv":
            df.write_csv(output_file)
        elif self.fmt == "parquet":
            df.write_parquet(output_file)
        else:
            df.write_json(output_file)

        logger.info(f"Written {len(df)} rows to {output_file}")
        return str(output_file)

    def export(self, bundle: ReportBundle) -> Dict[str, str]:
        """
        Export a bundle.

        Returns:
            Report name -> written file path (failed reports are skipped)
        """
        self.output_path.mkdir(parents=True, exist_ok=True)
        timestamp = bundle.generated_at.strftime("%Y%m%d_%H%M%S")
        paths: Dict[str, str] = {}

        for report in bundle:
            if report.status == ReportStatus.FAILED:
                logger.warning("Skipping failed report", report=report.name, error=report.error)
                continue
            paths[report.name] = self._write_output(report.to_frame(), report.name, timestamp)

        manifest = self.output_path / f"summary_{timestamp}.json"
        manifest.write_text(
            json.dumps(
                {
                    "app": self.app_name,
                    "version": self.version,
                    "generated_at": bundle.generated_at.isoformat(),
                    "source_rows": bundle.source_rows,
                    "reports": bundle.summary(),
                    "files": paths,
                },
                indent=2,
            ),
            encoding="utf-8",
        )
        return paths


def render_report(report: Report) -> str:
    """Console table for one report"""
    header = f"{report.title} [{report.name}]"
    if report.status == ReportStatus.FAILED:
        return f"{header}\n  FAILED: {report.error}"
    if report.status == ReportStatus.EMPTY:
        return f"{header}\n  (no rows)"

    with pl.Config(tbl_rows=-1, tbl_hide_dataframe_shape=True, tbl_hide_column_data_types=True):
        table = str(report.to_frame())
    return f"{header}\n{table}"


def render_bundle(bundle: ReportBundle) -> str:
    """Console tables for every report of a bundle"""
    generated = bundle.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z")
    sections = [f"Delivery performance reports ({generated})"]
    sections.extend(render_report(report) for report in bundle)
    return "\n\n".join(sections)
