"""
Reporting Module
"""
from .builder import (
    REPORT_NAMES,
    Report,
    ReportBuilder,
    ReportBundle,
    ReportDefinition,
    ReportStatus,
)
from .exporter import ReportExporter, render_bundle, render_report

__all__ = [
    "REPORT_NAMES",
    "Report",
    "ReportBuilder",
    "ReportBundle",
    "ReportDefinition",
    "ReportStatus",
    "ReportExporter",
    "render_bundle",
    "render_report",
]
