"""Row validation for admin spreadsheet uploads.

Provides:
- ``ValidationIssue`` / ``ValidationResult`` collecting per-row problems
- ``ValidationRegistry`` of row checks run over a sheet
- ``validate_sheet()`` applying the required/numeric rules for a dataset
- ``coerce_rows()`` turning validated rows into dataset records

Row numbers in messages are spreadsheet rows: the header is row 1, so the
first data row (index 0) is reported as row 2.
"""

from typing import Any, Callable, Dict, List, Optional

from utils.datasets import coerce_number
from utils.pages import numeric_fields

MAX_REPORTED_ERRORS = 50


class ValidationIssue:
    """Represents a single validation issue found in an uploaded row."""

    def __init__(self, check_name: str, severity: str, detail: str,
                 row: Optional[int] = None, field: Optional[str] = None):
        self.check_name = check_name
        self.severity = severity
        self.detail = detail
        self.row = row
        self.field = field

    def __repr__(self) -> str:
        return (f"ValidationIssue(check={self.check_name}, severity={self.severity}, "
                f"row={self.row})")


class ValidationResult:
    """Collects the issues found while validating one sheet."""

    def __init__(self):
        self.issues: List[ValidationIssue] = []
        self.failed_checks: List[str] = []

    def add_issue(self, check_name: str, severity: str, detail: str,
                  row: Optional[int] = None, field: Optional[str] = None) -> None:
        self.issues.append(ValidationIssue(check_name, severity, detail, row, field))

    def mark_check_failed(self, check_name: str) -> None:
        self.failed_checks.append(check_name)

    def get_issues_by_severity(self, severity: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]

    def error_count(self) -> int:
        return len(self.get_issues_by_severity("error"))

    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return self.error_count() == 0

    def error_messages(self, limit: int = MAX_REPORTED_ERRORS) -> List[str]:
        """Error details in row order, capped at *limit*."""
        errors = sorted(
            self.get_issues_by_severity("error"),
            key=lambda i: (i.row or 0),
        )
        return [i.detail for i in errors[:limit]]


RowCheck = Callable[[int, Dict[str, Any]], List[ValidationIssue]]


class ValidationRegistry:
    """Manages a collection of row check functions."""

    def __init__(self):
        self.checks: Dict[str, RowCheck] = {}

    def register(self, name: str, check_fn: RowCheck) -> None:
        """Register a check taking ``(row_number, row)`` and returning issues."""
        self.checks[name] = check_fn

    def run_all(self, rows: List[Dict[str, Any]]) -> ValidationResult:
        result = ValidationResult()
        for check_name, check_fn in self.checks.items():
            found = False
            for index, row in enumerate(rows):
                for issue in check_fn(index + 2, row):
                    result.issues.append(issue)
                    found = True
            if found:
                result.mark_check_failed(check_name)
        return result


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def required_fields(dataset: str) -> tuple[str, ...]:
    if dataset == "rice":
        return ("Column1",)
    return ("country", "year")


def _required_check(fields: tuple[str, ...]) -> RowCheck:
    def check(row_number: int, row: Dict[str, Any]) -> List[ValidationIssue]:
        return [
            ValidationIssue("required_fields", "error",
                            f"Row {row_number}: Missing {f}", row_number, f)
            for f in fields if _is_blank(row.get(f))
        ]
    return check


def _numeric_check(fields: tuple[str, ...]) -> RowCheck:
    def check(row_number: int, row: Dict[str, Any]) -> List[ValidationIssue]:
        issues = []
        for f in fields:
            value = row.get(f)
            if _is_blank(value):
                continue
            if coerce_number(value) is None:
                issues.append(ValidationIssue(
                    "numeric_fields", "error",
                    f"Row {row_number}: {f} must be a number", row_number, f,
                ))
        return issues
    return check


def build_registry(dataset: str) -> ValidationRegistry:
    registry = ValidationRegistry()
    registry.register("required_fields", _required_check(required_fields(dataset)))
    registry.register("numeric_fields", _numeric_check(numeric_fields(dataset)))
    return registry


def validate_sheet(dataset: str, rows: List[Any]) -> ValidationResult:
    """Validate uploaded rows for *dataset*.

    Rows that are not objects are reported as errors and skipped by the
    field checks.
    """
    dict_rows: List[Dict[str, Any]] = []
    bad_shape = ValidationResult()
    for index, row in enumerate(rows):
        if isinstance(row, dict):
            dict_rows.append(row)
        else:
            bad_shape.add_issue("row_shape", "error",
                                f"Row {index + 2}: Not a valid row", index + 2)
            dict_rows.append({})
    result = build_registry(dataset).run_all(dict_rows)
    if bad_shape.issues:
        result.issues = bad_shape.issues + result.issues
        result.mark_check_failed("row_shape")
    return result


def coerce_rows(dataset: str, rows: List[Dict[str, Any]],
                uploaded_by: str, uploaded_at: str) -> List[Dict[str, Any]]:
    """Convert numeric fields to numbers and stamp upload metadata.

    Blank cells are dropped; other fields are kept as given.
    """
    numeric = set(numeric_fields(dataset))
    coerced = []
    for row in rows:
        record: Dict[str, Any] = {}
        for key, value in row.items():
            if _is_blank(value):
                continue
            if key in numeric:
                number = coerce_number(value)
                record[key] = int(number) if key == "year" else number
            elif isinstance(value, str):
                record[key] = value.strip()
            else:
                record[key] = value
        record["uploadedAt"] = uploaded_at
        record["uploadedBy"] = uploaded_by
        coerced.append(record)
    return coerced
