"""Task record for the task ledger."""

from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .. import validation
from .enums import TaskCategory, TaskPriority, TaskStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_task_id() -> str:
    return f"task_{uuid4().hex}"


class TaskNote(BaseModel):
    """A timestamped note attached to a task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: f"note_{uuid4().hex}")
    content: str
    author: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> str:
        return validation.require_note_content(value)


class Task(BaseModel):
    """Task domain model.

    Field values go through :mod:`taskledger.validation` both when a record is
    built (from caller input or from a stored snapshot) and when one of the
    mutator methods below changes it. Every mutator refreshes ``updated_at``.

    On disk and over HTTP the record uses camelCase keys (``ownerId``,
    ``dueDate``, ...); Python code uses the snake_case attribute names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )

    id: str = Field(default_factory=generate_task_id, description="Unique task identifier")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Task description")
    owner_id: str = Field(..., frozen=True, description="Owning user id")
    assignee_id: Optional[str] = Field(default=None, description="Assigned user id, defaults to the owner")
    category: TaskCategory = Field(default=TaskCategory.PERSONAL)
    tags: List[str] = Field(default_factory=list)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    due_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    notes: List[TaskNote] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)

    # ---- field coercion ----

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return validation.normalize_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str:
        return validation.normalize_description(value)

    @field_validator("owner_id", mode="before")
    @classmethod
    def _owner_id(cls, value: Any) -> str:
        return validation.require_owner_id(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return validation.coerce_category(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> str:
        return validation.coerce_priority(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> str:
        return validation.coerce_status(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> List[str]:
        return validation.normalize_tags(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, value: Any) -> Optional[date]:
        return validation.coerce_due_date(value)

    @field_validator("estimated_hours", "actual_hours", mode="before")
    @classmethod
    def _hours(cls, value: Any, info: ValidationInfo) -> float:
        return validation.require_non_negative_hours(value, info.field_name)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _consistency(self) -> "Task":
        if not self.assignee_id:
            self.assignee_id = self.owner_id
        self.dependencies = validation.normalize_dependencies(self.dependencies, self.id)
        if self.status == TaskStatus.COMPLETED.value:
            if self.completed_at is None:
                self.completed_at = self.updated_at
        else:
            self.completed_at = None
        return self

    # ---- derived values ----

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value

    @property
    def days_until_due(self) -> Optional[int]:
        """Days left until the due date, ``None`` when there is no due date."""
        return validation.days_until(self.due_date)

    @property
    def is_overdue(self) -> bool:
        """True once the due date has passed, unless the task is completed."""
        days = self.days_until_due
        return days is not None and days < 0 and not self.is_completed

    @property
    def is_due_soon(self) -> bool:
        days = self.days_until_due
        return days is not None and 0 <= days <= 3

    @property
    def progress_percentage(self) -> float:
        if self.estimated_hours == 0:
            return 0.0
        return min(100.0, self.actual_hours / self.estimated_hours * 100)

    # ---- mutators ----

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utcnow()

    def update_title(self, title: str) -> None:
        self.title = validation.normalize_title(title)
        self.update_timestamp()

    def update_description(self, description: Optional[str]) -> None:
        self.description = validation.normalize_description(description)
        self.update_timestamp()

    def update_category(self, category: str) -> None:
        self.category = validation.coerce_category(category)
        self.update_timestamp()

    def update_priority(self, priority: str) -> None:
        self.priority = validation.coerce_priority(priority)
        self.update_timestamp()

    def update_status(self, status: str) -> None:
        """Set the status, stamping ``completed_at`` on entry to completed.

        Unrecognised statuses fall back to pending. Leaving completed clears
        ``completed_at``; re-completing an already completed task keeps it.
        """
        was_completed = self.is_completed
        self.status = validation.coerce_status(status)
        if self.is_completed:
            if not was_completed or self.completed_at is None:
                self.completed_at = utcnow()
        else:
            self.completed_at = None
        self.update_timestamp()

    def mark_completed(self) -> None:
        """Mark task as completed and update timestamp."""
        self.update_status(TaskStatus.COMPLETED.value)

    def set_due_date(self, due_date: Any) -> None:
        self.due_date = validation.coerce_due_date(due_date)
        self.update_timestamp()

    def assign_to(self, user_id: Optional[str]) -> None:
        self.assignee_id = user_id or self.owner_id
        self.update_timestamp()

    def set_estimated_hours(self, hours: Any) -> None:
        self.estimated_hours = validation.require_non_negative_hours(hours, "estimated_hours")
        self.update_timestamp()

    def add_time_spent(self, hours: float) -> None:
        """Add worked hours; zero or negative amounts are ignored."""
        if hours > 0:
            self.actual_hours += hours
            self.update_timestamp()

    def set_tags(self, tags: Iterable[str]) -> None:
        self.tags = validation.normalize_tags(tags)
        self.update_timestamp()

    def add_tag(self, tag: str) -> None:
        self.tags = validation.normalize_tags([*self.tags, tag])
        self.update_timestamp()

    def remove_tag(self, tag: str) -> None:
        target = tag.strip().lower()
        self.tags = [t for t in self.tags if t != target]
        self.update_timestamp()

    def add_note(self, content: str, author: Optional[str] = None) -> TaskNote:
        note = TaskNote(content=content, author=author)
        self.notes.append(note)
        self.update_timestamp()
        return note

    def add_dependency(self, task_id: str) -> None:
        self.dependencies = validation.normalize_dependencies([*self.dependencies, task_id], self.id)
        self.update_timestamp()

    def remove_dependency(self, task_id: str) -> None:
        self.dependencies = [d for d in self.dependencies if d != task_id]
        self.update_timestamp()

    def to_record(self) -> dict:
        """JSON-ready dict with camelCase keys, as written to storage."""
        return self.model_dump(mode="json", by_alias=True)
