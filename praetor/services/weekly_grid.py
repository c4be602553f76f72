"""
Weekly Grid - The editable (client, project, task) x day matrix of a week.

Architecture Decision: Reducer Pattern
The grid is an immutable GridState. Every user edit is an action and
``reduce(state, action)`` returns a new state, so the whole editing flow can be
tested without any UI. Submitting does not talk to storage: it turns the grid
into a SubmitPlan of create and update operations that the timesheet service
dispatches.
"""

import datetime
import logging
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from praetor.domain.models import Client, Project, ProjectTask, TimeEntry
from praetor.services.calendar_service import WeekDay
from praetor.services.validation import ValidationResult, validate_grid
from praetor.utils import parse_hours

logger = logging.getLogger(__name__)


class GridEditError(ValueError):
    """Raised when an action targets a missing row, a day outside the week or a forbidden day."""


class CellState(str, Enum):
    EMPTY = "empty"
    PENDING_CREATE = "pending_create"
    PERSISTED_EDITABLE = "persisted_editable"


class GridCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: float = 0.0
    note: str = ""
    entry_id: Optional[int] = None
    # Text typed as hours that could not be parsed
    invalid_input: Optional[str] = None


class GridRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    project_id: str = ""
    task_name: str = ""
    days: Dict[datetime.date, GridCell] = Field(default_factory=dict)
    week_note: str = ""

    @property
    def key(self) -> tuple:
        return (self.client_id, self.project_id, self.task_name)


class Catalog(BaseModel):
    """Clients, projects and tasks selectable in the grid."""
    model_config = ConfigDict(frozen=True)

    clients: List[Client] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    tasks: List[ProjectTask] = Field(default_factory=list)

    def client(self, client_id: str) -> Optional[Client]:
        return next((c for c in self.clients if c.id == client_id), None)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def has_task(self, project_id: str, task_name: str) -> bool:
        return any(t.project_id == project_id and t.name == task_name for t in self.tasks)

    def first_project(self, client_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.client_id == client_id), None)

    def first_task(self, project_id: str) -> Optional[ProjectTask]:
        return next((t for t in self.tasks if t.project_id == project_id), None)

    def client_name(self, client_id: str) -> str:
        client = self.client(client_id)
        return client.name if client else "Unknown"

    def project_name(self, project_id: str) -> str:
        project = self.project(project_id)
        return project.name if project else "General"

    def empty_row(self) -> GridRow:
        """A new row preset to the first client and its first project"""
        client_id = self.clients[0].id if self.clients else ""
        project = self.first_project(client_id)
        return GridRow(client_id=client_id, project_id=project.id if project else "")


class EntryOperation(BaseModel):
    """One create or update produced by a grid submission."""

    row_index: int
    date: datetime.date
    client_id: str
    client_name: str
    project_id: str
    project_name: str
    task: str
    duration: float
    notes: str = ""
    entry_id: Optional[int] = None

    def update_values(self) -> Dict:
        """Fields written to an existing entry"""
        values = self.model_dump(exclude={"row_index", "date", "entry_id"})
        values["notes"] = self.notes or None
        return values


class SubmitPlan(BaseModel):
    creates: List[EntryOperation] = Field(default_factory=list)
    updates: List[EntryOperation] = Field(default_factory=list)


class GridState(BaseModel):
    model_config = ConfigDict(frozen=True)

    week: List[WeekDay]
    rows: List[GridRow]
    catalog: Catalog = Field(default_factory=Catalog)
    has_changes: bool = False
    plan: Optional[SubmitPlan] = None
    errors: ValidationResult = Field(default_factory=ValidationResult)

    def week_day(self, day: datetime.date) -> Optional[WeekDay]:
        return next((d for d in self.week if d.date == day), None)


# Actions

class SetCell(BaseModel):
    row: int
    day: datetime.date
    field: Literal["duration", "note"]
    value: Union[float, str]


class SetRowField(BaseModel):
    row: int
    field: Literal["client_id", "project_id", "task_name", "week_note"]
    value: str


class AddRow(BaseModel):
    pass


class DeleteRow(BaseModel):
    row: int


class Submit(BaseModel):
    pass


GridAction = Union[SetCell, SetRowField, AddRow, DeleteRow, Submit]


def cell_state(cell: Optional[GridCell]) -> CellState:
    """Classify a cell: already stored, waiting to be created, or empty"""
    if cell is None:
        return CellState.EMPTY
    if cell.entry_id is not None:
        return CellState.PERSISTED_EDITABLE
    if cell.duration > 0:
        return CellState.PENDING_CREATE
    return CellState.EMPTY


def build_grid(entries: Sequence[TimeEntry], week: List[WeekDay],
               catalog: Optional[Catalog] = None) -> GridState:
    """
    Group the stored entries of a week into grid rows.

    Entries sharing (client, project, task) collapse into one row with one
    cell per day. With no entries a single empty row is offered.
    """
    catalog = catalog or Catalog()
    week_dates = {d.date for d in week}
    groups: Dict[tuple, GridRow] = {}

    for entry in entries:
        if entry.date not in week_dates:
            continue
        key = (entry.client_id, entry.project_id, entry.task)
        row = groups.get(key)
        if row is None:
            row = GridRow(client_id=entry.client_id, project_id=entry.project_id, task_name=entry.task)
        elif entry.date in row.days:
            logger.warning(f"Several entries for {key} on {entry.date}, showing entry {entry.id}")

        days = dict(row.days)
        days[entry.date] = GridCell(duration=entry.duration, note=entry.notes or "", entry_id=entry.id)
        groups[key] = row.model_copy(update={"days": days})

    rows = list(groups.values())
    if not rows:
        rows.append(catalog.empty_row())
    return GridState(week=week, rows=rows, catalog=catalog)


def _replace_row(state: GridState, index: int, row: GridRow) -> List[GridRow]:
    rows = list(state.rows)
    rows[index] = row
    return rows


def _edited(state: GridState, rows: List[GridRow]) -> GridState:
    # Any edit invalidates the last submit attempt
    return state.model_copy(update={
        "rows": rows, "has_changes": True, "plan": None, "errors": ValidationResult(),
    })


def _get_row(state: GridState, index: int) -> GridRow:
    if not 0 <= index < len(state.rows):
        raise GridEditError(f"Row {index} does not exist")
    return state.rows[index]


def _set_cell(state: GridState, action: SetCell) -> GridState:
    row = _get_row(state, action.row)
    week_day = state.week_day(action.day)
    if week_day is None:
        raise GridEditError(f"{action.day} is not part of the displayed week")
    if week_day.is_forbidden:
        raise GridEditError(f"Time can not be logged on {action.day}")

    cell = row.days.get(action.day, GridCell())
    if action.field == "duration":
        try:
            cell = cell.model_copy(update={"duration": parse_hours(action.value), "invalid_input": None})
        except ValueError:
            cell = cell.model_copy(update={"duration": 0.0, "invalid_input": str(action.value)})
    else:
        cell = cell.model_copy(update={"note": str(action.value)})

    days = dict(row.days)
    days[action.day] = cell
    rows = _replace_row(state, action.row, row.model_copy(update={"days": days}))
    return _edited(state, rows)


def _set_row_field(state: GridState, action: SetRowField) -> GridState:
    """
    Change one row field, keeping task within project within client.

    A new client resets project and task to its first ones, a new project
    moves the row to that project's client and resets the task. Ids and task
    names unknown to the catalog are rejected; an empty value clears the field
    and everything below it.
    """
    row = _get_row(state, action.row)
    catalog = state.catalog
    update = {action.field: action.value}

    if action.field == "client_id":
        if action.value and catalog.client(action.value) is None:
            raise GridEditError(f"Unknown client {action.value!r}")
        project = catalog.first_project(action.value) if action.value else None
        update["project_id"] = project.id if project else ""
        task = catalog.first_task(project.id) if project else None
        update["task_name"] = task.name if task else ""
    elif action.field == "project_id":
        project = catalog.project(action.value) if action.value else None
        if action.value and project is None:
            raise GridEditError(f"Unknown project {action.value!r}")
        if project is not None:
            update["client_id"] = project.client_id
        task = catalog.first_task(project.id) if project else None
        update["task_name"] = task.name if task else ""
    elif action.field == "task_name":
        if action.value and not catalog.has_task(row.project_id, action.value):
            raise GridEditError(f"Task {action.value!r} does not belong to project {row.project_id!r}")

    rows = _replace_row(state, action.row, row.model_copy(update=update))
    return _edited(state, rows)


def _delete_row(state: GridState, action: DeleteRow) -> GridState:
    _get_row(state, action.row)
    rows = [row for index, row in enumerate(state.rows) if index != action.row]
    if not rows:
        rows.append(state.catalog.empty_row())
    return _edited(state, rows)


def plan_submission(state: GridState) -> SubmitPlan:
    """
    Split the grid into create and update operations.

    Cells with hours and no stored entry become creates, cells with hours and
    a stored entry become updates. Cells at zero are skipped, which leaves a
    stored entry untouched when its hours are cleared.
    """
    plan = SubmitPlan()
    catalog = state.catalog

    for index, row in enumerate(state.rows):
        for day in sorted(row.days):
            cell = row.days[day]
            if cell.duration <= 0:
                continue
            operation = EntryOperation(
                row_index=index,
                date=day,
                client_id=row.client_id,
                client_name=catalog.client_name(row.client_id),
                project_id=row.project_id,
                project_name=catalog.project_name(row.project_id),
                task=row.task_name,
                duration=cell.duration,
                notes=cell.note or row.week_note,
                entry_id=cell.entry_id,
            )
            if cell.entry_id is None:
                plan.creates.append(operation)
            else:
                plan.updates.append(operation)
    return plan


def _submit(state: GridState) -> GridState:
    errors = validate_grid(state.rows)
    if not errors.ok:
        return state.model_copy(update={"errors": errors, "plan": None})

    plan = plan_submission(state)
    return state.model_copy(update={"errors": ValidationResult(), "plan": plan, "has_changes": False})


def reduce(state: GridState, action: GridAction) -> GridState:
    """
    Apply one action to the grid and return the new state.

    Raises:
        GridEditError: if the action targets a missing row or a day that can not be edited
    """
    if isinstance(action, SetCell):
        return _set_cell(state, action)
    if isinstance(action, SetRowField):
        return _set_row_field(state, action)
    if isinstance(action, AddRow):
        rows = list(state.rows) + [state.catalog.empty_row()]
        return _edited(state, rows)
    if isinstance(action, DeleteRow):
        return _delete_row(state, action)
    if isinstance(action, Submit):
        return _submit(state)
    raise TypeError(f"Unknown grid action: {action!r}")


def day_totals(state: GridState) -> Dict[datetime.date, float]:
    """Hours per displayed day across all rows"""
    return {
        d.date: sum(row.days[d.date].duration for row in state.rows if d.date in row.days)
        for d in state.week
    }


def week_total(state: GridState) -> float:
    return sum(day_totals(state).values())
