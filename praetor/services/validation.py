"""
Validation of time entries before anything is sent to storage.

One result type is shared by the single entry form and the weekly grid, so
both flows report problems the same way: a mapping of field to message.
"""

import math
from typing import Dict, Optional, Sequence

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def merge(self, other: "ValidationResult", prefix: str = "") -> None:
        for field, message in other.errors.items():
            self.add(f"{prefix}{field}", message)


class EntryValidationError(ValueError):
    """Raised when an entry fails validation; carries the per-field result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(f"{k}: {v}" for k, v in result.errors.items()))


def validate_duration(duration: Optional[float], invalid_input: Optional[str] = None,
                      required: bool = True) -> Optional[str]:
    """Return an error message for a duration value, or None if it is valid"""
    if invalid_input is not None:
        return "Hours must be a number"
    if duration is None:
        return "Hours are required and must be greater than 0" if required else None
    if not math.isfinite(duration):
        return "Hours must be a number"
    if duration < 0:
        return "Hours can not be negative"
    if required and duration <= 0:
        return "Hours are required and must be greater than 0"
    if duration > 24:
        return "Hours can not exceed 24 per day"
    return None


def validate_entry(client_id: str, project_id: str, task: str,
                   duration: Optional[float]) -> ValidationResult:
    """Validate the fields of a single entry"""
    result = ValidationResult()
    if not client_id:
        result.add("client_id", "Client is required")
    if not project_id:
        result.add("project_id", "Project is required")
    if not task or not task.strip():
        result.add("task", "Task is required")

    message = validate_duration(duration)
    if message:
        result.add("duration", message)
    return result


def validate_grid(rows: Sequence) -> ValidationResult:
    """
    Validate every row of a weekly grid.

    Cells left at zero are ignored; a row only needs client, project and task
    once one of its cells holds hours.
    """
    result = ValidationResult()
    for index, row in enumerate(rows):
        prefix = f"rows[{index}]."
        has_hours = False

        for day, cell in sorted(row.days.items()):
            message = validate_duration(cell.duration, cell.invalid_input, required=False)
            if message:
                result.add(f"{prefix}days[{day.isoformat()}].duration", message)
            elif cell.duration > 0:
                has_hours = True

        if has_hours:
            row_result = validate_entry(row.client_id, row.project_id, row.task_name, 1.0)
            result.merge(row_result, prefix)
    return result
