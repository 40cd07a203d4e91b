"""
Delivery Aggregator

Grouped counts and late-rate percentages over a snapshot:
- order status distribution
- overall on-time vs late split
- late rate by product category (optionally above a volume floor)
- late rate by review score
- late rate by delivery year and review score

Every operation is a pure reduction of the snapshot. Joins are inner joins,
so orders, products or reviews without a match simply drop out. Groups are
only formed from existing rows, which keeps denominators non-zero.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

import polars as pl
import structlog

from src.config import Settings, get_settings
from .classifier import (
    DELIVERED_COL,
    ESTIMATED_COL,
    STATUS_COL,
    ClassifiedOrderView,
    OnTimeStatus,
    late_expr,
)
from .exceptions import InvalidAggregationInput
from .results import (
    CanceledDelivery,
    CategoryLateRate,
    ScoreLateRate,
    StatusCount,
    StatusShare,
    YearlyScoreLateRate,
)

if TYPE_CHECKING:
    from src.ingestion.sources import Snapshot

logger = structlog.get_logger(__name__)

CATEGORY_COL = "product_category_name_english"
SCORE_COL = "review_score"


def percent(part: int, whole: int, decimals: int = 2) -> float:
    """
    part / whole * 100, rounded half-up.

    Raises:
        InvalidAggregationInput: If whole is not positive
    """
    if whole <= 0:
        raise InvalidAggregationInput(f"Cannot compute a percentage over {whole} rows")
    value = Decimal(part) * 100 / Decimal(whole)
    return float(value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP))


def _require(df: pl.DataFrame, name: str, columns: Iterable[str]) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidAggregationInput(f"{name} is missing columns: {missing}")


def _label_key(label: Optional[object]) -> Tuple[bool, str]:
    # Null labels sort last
    return (label is None, "" if label is None else str(label))


def _count_by(df: pl.DataFrame, column: str) -> List[Tuple[Optional[str], int]]:
    grouped = df.group_by(column).agg(pl.len().alias("order_count"))
    return list(grouped.select(column, "order_count").iter_rows())


class Aggregator:
    """
    Computes delivery aggregates for one snapshot.

    The classified order view is materialized on first use and shared by
    every timeliness aggregate.

    Example:
        aggregator = Aggregator(CsvDataSource("data/raw").load())
        aggregator.category_late_rate(min_orders=500)
    """

    def __init__(self, snapshot: "Snapshot", settings: Optional[Settings] = None):
        self.snapshot = snapshot
        self.settings = settings or get_settings()
        self.view = ClassifiedOrderView(snapshot)

    def refresh(self, snapshot: "Snapshot") -> None:
        """Swap in a new snapshot; the classified view follows its content"""
        self.snapshot = snapshot
        self.view.refresh(snapshot)

    @property
    def classified(self) -> pl.DataFrame:
        return self.view.frame

    def _percent(self, part: int, whole: int) -> float:
        return percent(part, whole, self.settings.reports.percent_decimals)

    def _shares(self, counts: Sequence[Tuple[Optional[str], int]]) -> List[StatusShare]:
        total = sum(count for _, count in counts)
        rows = [
            StatusShare(
                status=label,
                order_count=count,
                percent_of_total=self._percent(count, total),
            )
            for label, count in counts
        ]
        return sorted(rows, key=lambda r: (-r.order_count, _label_key(r.status)))

    # =========================================================================
    # Distributions
    # =========================================================================

    def status_distribution(self) -> List[StatusShare]:
        """Share of every order status across all orders"""
        orders = self.snapshot.orders
        _require(orders, "orders", ["order_status"])
        return self._shares(_count_by(orders, "order_status"))

    def overall_timeliness(self) -> List[StatusShare]:
        """On-time vs late split over classified orders"""
        return self._shares(_count_by(self.classified, STATUS_COL))

    def classified_status_breakdown(self) -> List[StatusCount]:
        """Classified orders per order status"""
        classified = self.classified
        _require(classified, "orders", ["order_status"])
        rows = [
            StatusCount(status=label, order_count=count)
            for label, count in _count_by(classified, "order_status")
        ]
        return sorted(rows, key=lambda r: (-r.order_count, _label_key(r.status)))

    def canceled_with_delivery_dates(self) -> List[CanceledDelivery]:
        """Canceled orders that still carry both delivery dates"""
        canceled = (
            self.classified
            .filter(pl.col("order_status") == "canceled")
            .sort("order_id")
        )
        return [
            CanceledDelivery(
                order_id=row["order_id"],
                estimated_delivery_date=row[ESTIMATED_COL],
                delivered_customer_date=row[DELIVERED_COL],
                on_time_status=row[STATUS_COL],
            )
            for row in canceled.iter_rows(named=True)
        ]

    # =========================================================================
    # Late rates
    # =========================================================================

    def category_late_rate(self, min_orders: Optional[int] = None) -> List[CategoryLateRate]:
        """
        Late rate per English category name.

        One joined row per order item, so total_orders counts item lines.

        Args:
            min_orders: Keep only categories with at least this many rows
        """
        if min_orders is not None and min_orders < 0:
            raise InvalidAggregationInput(f"min_orders must be non-negative, got {min_orders}")

        items = self.snapshot.order_items
        products = self.snapshot.products
        translations = self.snapshot.category_translations
        _require(items, "order_items", ["order_id", "product_id"])
        _require(products, "products", ["product_id", "product_category_name"])
        _require(translations, "category_translations", ["product_category_name", CATEGORY_COL])

        joined = (
            items.select("order_id", "product_id")
            .join(self.classified.select("order_id", STATUS_COL), on="order_id", how="inner")
            .join(products.select("product_id", "product_category_name"), on="product_id", how="inner")
            .join(
                translations.select("product_category_name", CATEGORY_COL).drop_nulls(),
                on="product_category_name",
                how="inner",
            )
        )

        grouped = joined.group_by(CATEGORY_COL).agg(
            pl.len().alias("total_orders"),
            (pl.col(STATUS_COL) == OnTimeStatus.LATE.value).sum().alias("late_orders"),
        )
        if min_orders is not None:
            grouped = grouped.filter(pl.col("total_orders") >= min_orders)

        rows = [
            CategoryLateRate(
                category=category,
                total_orders=total,
                late_rate_percent=self._percent(late, total),
            )
            for category, total, late in grouped.select(CATEGORY_COL, "total_orders", "late_orders").iter_rows()
        ]

        logger.debug(
            "Category late rate computed",
            joined_rows=joined.height,
            categories=len(rows),
            min_orders=min_orders,
        )
        return sorted(rows, key=lambda r: (-r.late_rate_percent, -r.total_orders, r.category))

    def review_score_late_rate(self) -> List[ScoreLateRate]:
        """Late rate of classified orders per review score"""
        reviews = self.snapshot.reviews
        _require(reviews, "reviews", ["order_id", SCORE_COL])

        joined = (
            reviews
            .filter(pl.col(SCORE_COL).is_not_null())
            .select("order_id", SCORE_COL)
            .join(self.classified.select("order_id", STATUS_COL), on="order_id", how="inner")
        )
        grouped = joined.group_by(SCORE_COL).agg(
            pl.len().alias("order_count"),
            (pl.col(STATUS_COL) == OnTimeStatus.LATE.value).sum().alias("late_orders"),
        )

        rows = [
            ScoreLateRate(
                review_score=score,
                late_rate_percent=self._percent(late, count),
                order_count=count,
            )
            for score, count, late in grouped.select(SCORE_COL, "order_count", "late_orders").iter_rows()
        ]
        return sorted(rows, key=lambda r: (-r.late_rate_percent, r.review_score))

    def yearly_score_late_rate(self) -> List[YearlyScoreLateRate]:
        """
        Late rate per (delivery year, review score).

        Lateness is recomputed from the raw orders rather than taken from the
        classified view: an order without an estimated date counts toward
        total_orders but can never be late. Set
        REPORT_YEARLY_REQUIRE_ESTIMATED_DATE to drop such orders instead.
        """
        orders = self.snapshot.orders
        reviews = self.snapshot.reviews
        _require(orders, "orders", ["order_id", ESTIMATED_COL, DELIVERED_COL])
        _require(reviews, "reviews", ["order_id", SCORE_COL])

        delivered = orders.filter(pl.col(DELIVERED_COL).is_not_null())
        if self.settings.reports.yearly_require_estimated_date:
            delivered = delivered.filter(pl.col(ESTIMATED_COL).is_not_null())

        joined = delivered.select("order_id", ESTIMATED_COL, DELIVERED_COL).join(
            reviews.filter(pl.col(SCORE_COL).is_not_null()).select("order_id", SCORE_COL),
            on="order_id",
            how="inner",
        )
        grouped = joined.group_by(
            pl.col(DELIVERED_COL).dt.year().alias("year"),
            SCORE_COL,
        ).agg(
            pl.len().alias("total_orders"),
            late_expr().fill_null(False).sum().alias("late_orders"),
        )

        rows = [
            YearlyScoreLateRate(
                year=year,
                review_score=score,
                total_orders=total,
                late_orders=late,
                late_rate_percent=self._percent(late, total),
            )
            for year, score, total, late in grouped.select(
                "year", SCORE_COL, "total_orders", "late_orders"
            ).iter_rows()
        ]
        return sorted(rows, key=lambda r: (r.year, r.review_score))
