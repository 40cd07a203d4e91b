"""
Aggregate Result Rows

One frozen model per aggregate shape. Percentages are already rounded.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ResultRow(BaseModel):
    """Base for aggregate rows"""
    model_config = ConfigDict(frozen=True)


class StatusShare(ResultRow):
    """Count and share of one status group"""
    status: Optional[str]
    order_count: int
    percent_of_total: float


class StatusCount(ResultRow):
    """Count of classified orders for one order status"""
    status: Optional[str]
    order_count: int


class CategoryLateRate(ResultRow):
    """Late rate of one product category"""
    category: str
    total_orders: int
    late_rate_percent: float


class ScoreLateRate(ResultRow):
    """Late rate of orders with one review score"""
    review_score: int
    late_rate_percent: float
    order_count: int


class YearlyScoreLateRate(ResultRow):
    """Late rate for one (delivery year, review score) pair"""
    year: int
    review_score: int
    total_orders: int
    late_orders: int
    late_rate_percent: float


class CanceledDelivery(ResultRow):
    """A canceled order that nonetheless carries both delivery dates"""
    order_id: str
    estimated_delivery_date: datetime
    delivered_customer_date: datetime
    on_time_status: str
