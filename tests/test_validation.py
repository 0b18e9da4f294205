"""
Tests for utils/validation.py: upload row validation and coercion.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.validation import (
    ValidationIssue,
    ValidationRegistry,
    ValidationResult,
    coerce_rows,
    required_fields,
    validate_sheet,
)


class TestValidationResult:
    def test_empty_is_valid(self):
        assert ValidationResult().is_valid()

    def test_warning_does_not_fail(self):
        result = ValidationResult()
        result.add_issue("x", "warning", "just a note")
        assert result.is_valid()

    def test_error_messages_sorted_and_capped(self):
        result = ValidationResult()
        result.add_issue("x", "error", "Row 5: b", row=5)
        result.add_issue("x", "error", "Row 2: a", row=2)
        result.add_issue("x", "error", "Row 9: c", row=9)
        assert result.error_messages(limit=2) == ["Row 2: a", "Row 5: b"]


class TestRegistry:
    def test_failed_checks(self):
        registry = ValidationRegistry()
        registry.register("never", lambda n, row: [])
        registry.register("always", lambda n, row: [ValidationIssue("always", "error", f"Row {n}", n)])
        result = registry.run_all([{}, {}])
        assert result.failed_checks == ["always"]
        assert [i.row for i in result.issues] == [2, 3]


class TestValidateSheet:
    def test_valid_rows(self):
        rows = [
            {"country": "Ghana", "year": 2025, "gdp_usd": "1,000"},
            {"country": "Mali", "year": "2024", "gdp_usd": None},
        ]
        assert validate_sheet("macro", rows).is_valid()

    def test_missing_required(self):
        result = validate_sheet("macro", [{"country": " ", "year": 2025}])
        assert result.error_messages() == ["Row 2: Missing country"]

    def test_non_numeric_metric(self):
        result = validate_sheet("agric", [
            {"country": "Ghana", "year": 2025},
            {"country": "Ghana", "year": 2024, "fertilizer_tons": "lots"},
        ])
        assert result.error_messages() == ["Row 3: fertilizer_tons must be a number"]

    def test_unknown_columns_ignored(self):
        rows = [{"country": "Ghana", "year": 2025, "notes": "free text"}]
        assert validate_sheet("nutrition", rows).is_valid()

    def test_rice_needs_country_column_only(self):
        assert required_fields("rice") == ("Column1",)
        result = validate_sheet("rice", [{"Column1": "Ghana", "2020": 10}, {"2021": "x"}])
        assert result.error_messages() == [
            "Row 3: Missing Column1",
            "Row 3: 2021 must be a number",
        ]

    def test_non_dict_row(self):
        result = validate_sheet("macro", ["oops"])
        messages = result.error_messages()
        assert messages[0] == "Row 2: Not a valid row"
        assert "row_shape" in result.failed_checks


class TestCoerceRows:
    def test_numbers_and_stamps(self):
        rows = [{"country": " Ghana ", "year": "2025", "gdp_usd": "1,500", "notes": ""}]
        out = coerce_rows("macro", rows, "jane@ecoagris.org", "2025-01-01T00:00:00+00:00")
        assert out == [{
            "country": "Ghana",
            "year": 2025,
            "gdp_usd": 1500,
            "uploadedAt": "2025-01-01T00:00:00+00:00",
            "uploadedBy": "jane@ecoagris.org",
        }]
