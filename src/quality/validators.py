"""
Snapshot Validation Module

Rule-based data quality checks for the snapshot collections.

Findings are reported, never enforced: the aggregates already exclude
missing dates, orphan rows and null scores, so a failed check only tells
the operator how much data the reports are silently dropping.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from src.database.models import OrderStatus

if TYPE_CHECKING:
    from src.ingestion.sources import Snapshot

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Data the reports cannot be trusted with
    WARNING = "warning"  # Rows that will be excluded from some reports
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("order_id")
        validator.add_range_check("review_score", min_value=1, max_value=5)
        result = validator.validate(df)
    """

    def __init__(self, name: str = "data", strict_mode: bool = False):
        self.name = name
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"not_null_{column}", column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=f"not_null_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"unique_{column}", column, severity)

            total = len(df)
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=f"unique_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"range_{column}", column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=f"range_{column}",
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            passed = out_of_range == 0

            return ValidationCheck(
                name=f"range_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"enum_{column}", column, severity)

            invalid = df.filter(
                ~pl.col(column).is_in(allowed_values) & pl.col(column).is_not_null()
            ).height
            passed = invalid == 0

            return ValidationCheck(
                name=f"enum_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {invalid} invalid values" if not passed else "All values are valid",
                details={"allowed_values": allowed_values, "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every value exists in a reference collection"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"ref_integrity_{column}", column, severity)

            orphans = df.filter(
                ~pl.col(column).is_in(reference_df[reference_column].drop_nulls().unique().to_list()) & pl.col(column).is_not_null()
            ).height
            passed = orphans == 0

            return ValidationCheck(
                name=f"ref_integrity_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now(timezone.utc)
        results = []

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    collection=self.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            f"Validation complete: {status.value}",
            collection=self.name,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )


# Pre-built validators for the snapshot collections
def create_orders_validator() -> DataValidator:
    """Orders: identity, known statuses, delivery date coverage"""
    return (
        DataValidator("orders")
        .add_not_null_check("order_id")
        .add_unique_check("order_id")
        .add_enum_check("order_status", [s.value for s in OrderStatus], severity=ValidationSeverity.WARNING)
        .add_not_null_check("order_estimated_delivery_date", severity=ValidationSeverity.INFO)
        .add_not_null_check("order_delivered_customer_date", severity=ValidationSeverity.INFO)
    )


def create_order_items_validator(snapshot: "Snapshot") -> DataValidator:
    """Order items: must point at known orders and products"""
    return (
        DataValidator("order_items")
        .add_not_null_check("order_id")
        .add_referential_integrity_check("order_id", snapshot.orders, "order_id", severity=ValidationSeverity.WARNING)
        .add_referential_integrity_check("product_id", snapshot.products, "product_id", severity=ValidationSeverity.WARNING)
    )


def create_products_validator(snapshot: "Snapshot") -> DataValidator:
    """Products: categories should have an English translation"""
    return (
        DataValidator("products")
        .add_unique_check("product_id")
        .add_not_null_check("product_category_name", severity=ValidationSeverity.WARNING)
        .add_referential_integrity_check(
            "product_category_name",
            snapshot.category_translations,
            "product_category_name",
            severity=ValidationSeverity.WARNING,
        )
    )


def create_translations_validator() -> DataValidator:
    return (
        DataValidator("category_translations")
        .add_unique_check("product_category_name")
        .add_not_null_check("product_category_name_english")
    )


def create_reviews_validator(snapshot: "Snapshot") -> DataValidator:
    """Reviews: scores on the 1-5 scale, attached to known orders"""
    return (
        DataValidator("reviews")
        .add_not_null_check("review_score", severity=ValidationSeverity.WARNING)
        .add_range_check("review_score", min_value=1, max_value=5)
        .add_referential_integrity_check("order_id", snapshot.orders, "order_id", severity=ValidationSeverity.WARNING)
    )


def validate_snapshot(snapshot: "Snapshot") -> Dict[str, ValidationResult]:
    """Run the pre-built validator of every collection"""
    validators = {
        "orders": create_orders_validator(),
        "order_items": create_order_items_validator(snapshot),
        "products": create_products_validator(snapshot),
        "category_translations": create_translations_validator(),
        "reviews": create_reviews_validator(snapshot),
    }
    return {name: validator.validate(snapshot.frame(name)) for name, validator in validators.items()}
