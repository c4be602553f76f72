"""
Tests for the shared entry validation.
"""

import pytest

from praetor.services.validation import (
    EntryValidationError,
    ValidationResult,
    validate_duration,
    validate_entry,
)


def test_valid_entry():
    assert validate_entry("c1", "p1", "Design", 2).ok


def test_missing_fields_are_reported_per_field():
    result = validate_entry("", "", "  ", None)

    assert set(result.errors) == {"client_id", "project_id", "task", "duration"}
    assert result.errors["duration"] == "Hours are required and must be greater than 0"


@pytest.mark.parametrize("duration", [0, -1, 25, float("nan"), float("inf")])
def test_invalid_durations(duration):
    assert not validate_entry("c1", "p1", "Design", duration).ok


def test_duration_optional_in_grid_cells():
    assert validate_duration(0, required=False) is None
    assert validate_duration(-2, required=False) == "Hours can not be negative"
    assert validate_duration(0, invalid_input="two", required=False) == "Hours must be a number"


def test_merge_with_prefix():
    result = ValidationResult()
    result.merge(validate_entry("c1", "p1", "", 1), prefix="rows[2].")
    assert result.errors == {"rows[2].task": "Task is required"}


def test_error_carries_result():
    result = validate_entry("c1", "p1", "", 1)
    error = EntryValidationError(result)

    assert isinstance(error, ValueError)
    assert error.result is result
    assert "task" in str(error)


def test_non_finite_hours_are_not_a_number():
    assert validate_duration(float("nan")) == "Hours must be a number"
    assert validate_duration(float("inf"), required=False) == "Hours must be a number"
