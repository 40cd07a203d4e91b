"""
Delivery Classifier

Labels orders as delivered on time or late.

An order is late when the customer received it strictly after the
estimated delivery date. Equal dates count as on time. Only orders carrying
both dates are classified; order status plays no part, so a canceled order
that still has both dates is classified like any other.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import polars as pl
import structlog

from .exceptions import InvalidAggregationInput, UnclassifiableOrder

if TYPE_CHECKING:
    from src.ingestion.sources import Snapshot

logger = structlog.get_logger(__name__)

ESTIMATED_COL = "order_estimated_delivery_date"
DELIVERED_COL = "order_delivered_customer_date"
STATUS_COL = "on_time_status"

DateLike = Union[date, datetime]


class OnTimeStatus(str, Enum):
    """Delivery timeliness label"""
    ON_TIME = "on_time"
    LATE = "late"


def _as_datetime(value: DateLike) -> datetime:
    # Calendar dates compare as midnight
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def classify(estimated: Optional[DateLike], delivered: Optional[DateLike]) -> OnTimeStatus:
    """
    Classify a single delivery.

    Raises:
        UnclassifiableOrder: If either date is missing
    """
    if estimated is None or delivered is None:
        raise UnclassifiableOrder("Both estimated and delivered dates are required")
    return OnTimeStatus.LATE if _as_datetime(delivered) > _as_datetime(estimated) else OnTimeStatus.ON_TIME


def late_expr() -> pl.Expr:
    """Lateness as a boolean expression; null when either date is null"""
    return pl.col(DELIVERED_COL) > pl.col(ESTIMATED_COL)


class DeliveryClassifier:
    """
    Classifies orders given as objects or mappings.

    Example:
        DeliveryClassifier().classify({"order_estimated_delivery_date": est,
                                       "order_delivered_customer_date": got})
    """

    def __init__(self, estimated_field: str = ESTIMATED_COL, delivered_field: str = DELIVERED_COL):
        self.estimated_field = estimated_field
        self.delivered_field = delivered_field

    def _get(self, order: Any, field: str) -> Any:
        if isinstance(order, dict):
            return order.get(field)
        return getattr(order, field, None)

    def classify(self, order: Any) -> OnTimeStatus:
        return classify(
            self._get(order, self.estimated_field),
            self._get(order, self.delivered_field),
        )


def classify_orders(orders: pl.DataFrame) -> pl.DataFrame:
    """
    Keep orders carrying both dates and add the on_time_status column.

    Raises:
        InvalidAggregationInput: If a date column is missing
    """
    missing = [c for c in (ESTIMATED_COL, DELIVERED_COL) if c not in orders.columns]
    if missing:
        raise InvalidAggregationInput(f"Orders frame is missing columns: {missing}")

    return (
        orders
        .filter(pl.col(ESTIMATED_COL).is_not_null() & pl.col(DELIVERED_COL).is_not_null())
        .with_columns(
            pl.when(late_expr())
            .then(pl.lit(OnTimeStatus.LATE.value))
            .otherwise(pl.lit(OnTimeStatus.ON_TIME.value))
            .alias(STATUS_COL)
        )
    )


class ClassifiedOrderView:
    """
    Classified orders materialized once per snapshot.

    The view is keyed by the snapshot fingerprint; a snapshot with different
    content makes it stale and `refresh` recomputes it.
    """

    def __init__(self, snapshot: "Snapshot"):
        self._snapshot = snapshot
        self._fingerprint: Optional[str] = None
        self._frame: Optional[pl.DataFrame] = None
        self._by_order_id: Optional[Dict[str, OnTimeStatus]] = None

    @property
    def frame(self) -> pl.DataFrame:
        if self._frame is None:
            self._materialize()
        return self._frame

    @property
    def fingerprint(self) -> Optional[str]:
        return self._fingerprint

    def _materialize(self) -> None:
        self._frame = classify_orders(self._snapshot.orders)
        self._fingerprint = self._snapshot.fingerprint
        self._by_order_id = None
        logger.debug(
            "Classified order view materialized",
            classified=self._frame.height,
            excluded=self._snapshot.orders.height - self._frame.height,
        )

    def status_of(self, order_id: str) -> Optional[OnTimeStatus]:
        """On-time status of one order, None when it was not classified"""
        if self._by_order_id is None:
            self._by_order_id = {
                oid: OnTimeStatus(status)
                for oid, status in self.frame.select("order_id", STATUS_COL).iter_rows()
            }
        return self._by_order_id.get(order_id)

    def is_stale(self, snapshot: "Snapshot") -> bool:
        return self._fingerprint is not None and self._fingerprint != snapshot.fingerprint

    def refresh(self, snapshot: "Snapshot") -> None:
        """Point the view at a snapshot; recompute only when its content differs"""
        if self._fingerprint == snapshot.fingerprint and self._frame is not None:
            self._snapshot = snapshot
            return
        self._snapshot = snapshot
        self._frame = None
        self._by_order_id = None
        self._fingerprint = None
