"""
Data Validation Module

Rule-based quality checks over entity tables held as Polars DataFrames.

Features:
- Null and uniqueness checks
- Range, pattern and allowed-value checks
- Referential integrity checks between tables
- Pre-built validators for every e-commerce table
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import polars as pl
import structlog

from commerce_metrics.data.models import OrderStatus, PaymentMethod
from commerce_metrics.data.store import FOREIGN_KEYS, TABLES, RecordStore

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks loading
    WARNING = "warning"  # Non-critical - logged but continues


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
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


def summarize(
    checks: List[ValidationCheck],
    started_at: datetime,
    strict_mode: bool = False,
) -> ValidationResult:
    """Fold check results into an overall status"""
    passed_checks = sum(1 for c in checks if c.passed)
    failed_checks = sum(1 for c in checks if not c.passed and c.severity == ValidationSeverity.ERROR)
    warning_count = sum(1 for c in checks if not c.passed and c.severity == ValidationSeverity.WARNING)

    if failed_checks > 0:
        status = ValidationStatus.FAILED
    elif warning_count > 0 and strict_mode:
        status = ValidationStatus.FAILED
    elif warning_count > 0:
        status = ValidationStatus.PARTIAL
    else:
        status = ValidationStatus.PASSED

    return ValidationResult(
        status=status,
        total_checks=len(checks),
        passed_checks=passed_checks,
        failed_checks=failed_checks,
        warning_count=warning_count,
        checks=checks,
        started_at=started_at,
        completed_at=_utcnow(),
    )


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Data validator for one table.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("id").add_unique_check("id")
        result = validator.validate(df)
    """

    def __init__(self, name: str = "table", strict_mode: bool = False):
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
            name = f"not_null_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        ignore_nulls: bool = False,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values; nulls may be exempt"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            values = df[column].drop_nulls() if ignore_nulls else df[column]
            total = len(values)
            unique_count = values.n_unique() if total else 0
            duplicate_count = total - unique_count
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={"unique_count": unique_count, "duplicate_count": duplicate_count},
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
        """Add check for values within an inclusive range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            # text columns from CSV compare numerically; unparsable values are skipped
            values = pl.col(column).cast(pl.Float64, strict=False)
            conditions = []
            if min_value is not None:
                conditions.append(values < min_value)
            if max_value is not None:
                conditions.append(values > max_value)

            if not conditions:
                return ValidationCheck(name=name, passed=True, severity=severity, message="No range specified")

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_pattern_check(
        self,
        column: str,
        pattern: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add regex pattern check over non-null values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"pattern_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            text = pl.col(column).cast(pl.Utf8)
            non_matching = df.filter(~text.str.contains(pattern) & text.is_not_null()).height
            total = df.filter(text.is_not_null()).height
            passed = non_matching == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {non_matching} values not matching pattern" if not passed else "All values match pattern",
                details={"pattern": pattern, "non_matching_count": non_matching},
                failed_rows=non_matching,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"enum_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            text = pl.col(column).cast(pl.Utf8)
            invalid = df.filter(~text.is_in(allowed_values) & text.is_not_null()).height
            passed = invalid == 0

            return ValidationCheck(
                name=name,
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
        reference_column: str = "id",
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every non-null value exists in another table"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"ref_integrity_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            # compare as text so CSV-loaded and typed frames agree
            ref_values = [str(v) for v in reference_df[reference_column].to_list() if v is not None] \
                if reference_column in reference_df.columns else []
            text = pl.col(column).cast(pl.Utf8)
            orphans = df.filter(~text.is_in(ref_values) & text.is_not_null()).height
            passed = orphans == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            passed = bool(check_func(df))
            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message="Check passed" if passed else message_on_fail,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def run_checks(self, df: pl.DataFrame) -> List[ValidationCheck]:
        """Run every check, prefixing check names with the table name"""
        results = []
        for check_func in self._checks:
            result = check_func(df)
            result.name = f"{self.name}.{result.name}"
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )
        return results

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = _utcnow()
        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows", table=self.name)

        result = summarize(self.run_checks(df), started_at, strict_mode=self.strict_mode)

        logger.info(
            f"Validation complete: {result.status.value}",
            table=self.name,
            passed=result.passed_checks,
            failed=result.failed_checks,
            warnings=result.warning_count,
        )
        return result


# Pre-built validators for the entity tables
def create_table_validators(frames: Mapping[str, pl.DataFrame]) -> Dict[str, DataValidator]:
    """
    Validators enforcing the entity invariants.

    Reference checks are wired against the other frames; a referenced table
    that is absent counts as empty.
    """
    def reference(table: str) -> pl.DataFrame:
        return frames.get(table, pl.DataFrame({"id": []}, schema={"id": pl.Utf8}))

    validators = {
        table: DataValidator(table).add_not_null_check("id").add_unique_check("id")
        for table in TABLES
    }

    (validators["customers"]
        .add_not_null_check("name")
        .add_unique_check("email", ignore_nulls=True)
        .add_pattern_check("email", r"^[^@\s]+@[^@\s]+$", severity=ValidationSeverity.WARNING))
    validators["categories"].add_not_null_check("name")
    (validators["products"]
        .add_not_null_check("name")
        .add_not_null_check("price")
        .add_range_check("price", min_value=0)
        .add_range_check("stock", min_value=0))
    (validators["orders"]
        .add_not_null_check("order_date")
        .add_enum_check("status", [s.value for s in OrderStatus]))
    (validators["order_items"]
        .add_range_check("qty", min_value=1)
        .add_not_null_check("unit_price"))
    (validators["payments"]
        .add_not_null_check("paid_at")
        .add_enum_check("method", [m.value for m in PaymentMethod])
        .add_not_null_check("amount"))

    for table, column, referenced in FOREIGN_KEYS:
        validators[table].add_not_null_check(column).add_referential_integrity_check(column, reference(referenced))

    return validators


def validate_frames(frames: Mapping[str, pl.DataFrame], strict_mode: bool = False) -> ValidationResult:
    """Validate raw table frames before they are loaded into a store"""
    started_at = _utcnow()
    validators = create_table_validators(frames)

    checks: List[ValidationCheck] = []
    for table, df in frames.items():
        if table not in validators:
            raise ValueError(f"Unknown table: {table}")
        checks.extend(validators[table].run_checks(df))

    result = summarize(checks, started_at, strict_mode=strict_mode)
    logger.info(
        f"Table validation complete: {result.status.value}",
        tables=sorted(frames),
        passed=result.passed_checks,
        failed=result.failed_checks,
        warnings=result.warning_count,
    )
    return result


def validate_store(store: RecordStore, strict_mode: bool = False) -> ValidationResult:
    """Validate every table of a loaded store"""
    return validate_frames({table: store.to_frame(table) for table in TABLES}, strict_mode=strict_mode)
