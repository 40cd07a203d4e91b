"""
Delivery analytics errors.
"""


class AnalyticsError(Exception):
    """Base class for errors raised by the reporting pipeline"""


class DataSourceError(AnalyticsError):
    """A record collection could not be read or lacks required columns"""


class InvalidAggregationInput(AnalyticsError):
    """An aggregate was asked to reduce an empty group or a malformed frame"""


class UnclassifiableOrder(AnalyticsError, ValueError):
    """An order without both delivery dates reached the classifier"""
