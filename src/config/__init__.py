"""
Delivery Performance Reporting
Configuration Module
"""
from .settings import (
    DataLakeSettings,
    DatabaseSettings,
    MonitoringSettings,
    ReportSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DataLakeSettings",
    "DatabaseSettings",
    "MonitoringSettings",
    "ReportSettings",
    "Settings",
    "get_settings",
]
