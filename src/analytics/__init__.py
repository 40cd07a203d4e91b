"""
Delivery Analytics Module
"""
from .aggregator import Aggregator, percent
from .classifier import (
    ClassifiedOrderView,
    DeliveryClassifier,
    OnTimeStatus,
    classify,
    classify_orders,
)
from .exceptions import (
    AnalyticsError,
    DataSourceError,
    InvalidAggregationInput,
    UnclassifiableOrder,
)

__all__ = [
    "Aggregator",
    "percent",
    "ClassifiedOrderView",
    "DeliveryClassifier",
    "OnTimeStatus",
    "classify",
    "classify_orders",
    "AnalyticsError",
    "DataSourceError",
    "InvalidAggregationInput",
    "UnclassifiableOrder",
]
