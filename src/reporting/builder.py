"""
Report Builder

Assembles the aggregator outputs into named, ordered reports.

Each report is computed independently: a failure in one is captured on
that report (status "failed") and logged, and every other report still
completes. A report whose aggregate yields no rows is marked "empty".
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Type

import polars as pl
import structlog
from pydantic import BaseModel, Field

from src.analytics.aggregator import Aggregator
from src.analytics.results import (
    CanceledDelivery,
    CategoryLateRate,
    ResultRow,
    ScoreLateRate,
    StatusCount,
    StatusShare,
    YearlyScoreLateRate,
)

logger = structlog.get_logger(__name__)


class ReportStatus(str, Enum):
    """Outcome of building one report"""
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class Report(BaseModel):
    """One named result set, ready for presentation"""
    name: str
    title: str
    columns: List[str]
    rows: List[ResultRow] = Field(default_factory=list)
    status: ReportStatus
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.status == ReportStatus.EMPTY

    def to_dicts(self) -> List[Dict]:
        return [row.model_dump() for row in self.rows]

    def to_frame(self) -> pl.DataFrame:
        """Rows as a polars frame with the report's column order"""
        if not self.rows:
            return pl.DataFrame(schema=self.columns)
        return pl.DataFrame(self.to_dicts()).select(self.columns)


@dataclass(frozen=True)
class ReportDefinition:
    """How to compute and label one report"""
    name: str
    title: str
    row_model: Type[ResultRow]
    compute: Callable[[Aggregator], List[ResultRow]]

    @property
    def columns(self) -> List[str]:
        return list(self.row_model.model_fields)


REPORT_DEFINITIONS: List[ReportDefinition] = [
    ReportDefinition(
        name="status_distribution",
        title="Order status distribution",
        row_model=StatusShare,
        compute=lambda agg: agg.status_distribution(),
    ),
    ReportDefinition(
        name="overall_timeliness",
        title="On-time vs late deliveries",
        row_model=StatusShare,
        compute=lambda agg: agg.overall_timeliness(),
    ),
    ReportDefinition(
        name="classified_status_breakdown",
        title="Classified orders by order status",
        row_model=StatusCount,
        compute=lambda agg: agg.classified_status_breakdown(),
    ),
    ReportDefinition(
        name="canceled_with_delivery_dates",
        title="Canceled orders carrying delivery dates",
        row_model=CanceledDelivery,
        compute=lambda agg: agg.canceled_with_delivery_dates(),
    ),
    ReportDefinition(
        name="category_late_rate",
        title="Late rate by product category",
        row_model=CategoryLateRate,
        compute=lambda agg: agg.category_late_rate(),
    ),
    ReportDefinition(
        name="category_late_rate_high_volume",
        title="Late rate by product category (high volume only)",
        row_model=CategoryLateRate,
        compute=lambda agg: agg.category_late_rate(
            min_orders=agg.settings.reports.min_category_orders
        ),
    ),
    ReportDefinition(
        name="review_score_late_rate",
        title="Late rate by review score",
        row_model=ScoreLateRate,
        compute=lambda agg: agg.review_score_late_rate(),
    ),
    ReportDefinition(
        name="yearly_score_late_rate",
        title="Late rate by review score over time",
        row_model=YearlyScoreLateRate,
        compute=lambda agg: agg.yearly_score_late_rate(),
    ),
]

REPORT_NAMES: List[str] = [d.name for d in REPORT_DEFINITIONS]


@dataclass
class ReportBundle:
    """All reports of one run, in registration order"""
    reports: Dict[str, Report]
    source_rows: Dict[str, int] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __iter__(self):
        return iter(self.reports.values())

    def __len__(self) -> int:
        return len(self.reports)

    def get(self, name: str) -> Report:
        return self.reports[name]

    @property
    def failed(self) -> List[Report]:
        return [r for r in self.reports.values() if r.status == ReportStatus.FAILED]

    def summary(self) -> Dict[str, Dict[str, object]]:
        """Status and row count per report"""
        return {
            name: {"status": report.status.value, "rows": len(report.rows)}
            for name, report in self.reports.items()
        }


class ReportBuilder:
    """
    Builds the registered reports from one aggregator.

    Example:
        bundle = ReportBuilder(Aggregator(snapshot)).build_all()
        bundle.get("overall_timeliness").rows
    """

    def __init__(
        self,
        aggregator: Aggregator,
        definitions: Optional[Iterable[ReportDefinition]] = None,
    ):
        self.aggregator = aggregator
        self._definitions: Dict[str, ReportDefinition] = {
            d.name: d for d in (definitions if definitions is not None else REPORT_DEFINITIONS)
        }

    @property
    def names(self) -> List[str]:
        return list(self._definitions)

    def build(self, name: str) -> Report:
        """
        Build one report.

        Raises:
            KeyError: If no report is registered under name
        """
        definition = self._definitions[name]
        started_at = datetime.now(timezone.utc)

        try:
            rows = definition.compute(self.aggregator)
            status = ReportStatus.OK if rows else ReportStatus.EMPTY
            error = None
        except Exception as e:
            logger.error(f"Report {name} failed: {e}", report=name, error_type=type(e).__name__)
            rows = []
            status = ReportStatus.FAILED
            error = str(e)

        duration = (datetime.now(timezone.utc) - started_at).total_seconds()
        logger.info("Report built", report=name, status=status.value, rows=len(rows), duration_seconds=duration)

        return Report(
            name=definition.name,
            title=definition.title,
            columns=definition.columns,
            rows=rows,
            status=status,
            error=error,
            duration_seconds=duration,
        )

    def build_all(self, names: Optional[Iterable[str]] = None) -> ReportBundle:
        """
        Build several reports; all registered reports by default.

        Raises:
            KeyError: If any requested name is unknown
        """
        selected = list(names) if names is not None else self.names
        unknown = [n for n in selected if n not in self._definitions]
        if unknown:
            raise KeyError(f"Unknown reports: {unknown}")

        reports = {name: self.build(name) for name in selected}
        bundle = ReportBundle(reports=reports, source_rows=self.aggregator.snapshot.row_counts)

        logger.info(
            "Report bundle complete",
            reports=len(bundle),
            failed=len(bundle.failed),
        )
        return bundle
