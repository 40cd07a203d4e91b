"""
Delivery Performance Reporting
Centralized Configuration Management

Configuration is loaded with Pydantic settings, from environment variables
and an optional .env file, with validation and type safety.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store holding the order snapshot"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="olist", alias="database", description="Database name")
    user: str = Field(default="analyst", description="Database user")
    password: SecretStr = Field(default="analyst", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full SQLAlchemy URL (overrides host/port)")

    @property
    def sync_url(self) -> str:
        """Sync database URL; DATABASE_URL wins when set"""
        if self.url:
            return self.url
        return f"postgresql+psycopg2://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class DataLakeSettings(BaseSettings):
    """File locations for raw snapshots and generated reports"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    raw_path: str = Field(default="./data/raw", description="Directory holding the Olist CSV files")
    curated_path: str = Field(default="./data/reports", description="Directory receiving exported reports")
    default_format: str = Field(default="csv", description="Export format: csv, parquet or json")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = ["csv", "parquet", "json"]
        if v.lower() not in allowed:
            raise ValueError(f"Export format must be one of: {allowed}")
        return v.lower()


class ReportSettings(BaseSettings):
    """Knobs for the delivery reports"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    min_category_orders: int = Field(default=500, ge=1, description="Volume floor for the high-volume category report")
    percent_decimals: int = Field(default=2, ge=0, le=6, description="Decimal places for rounded percentages")
    yearly_require_estimated_date: bool = Field(
        default=False,
        description="Drop orders without an estimated date from the yearly score report",
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or console")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="delivery-reports", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
