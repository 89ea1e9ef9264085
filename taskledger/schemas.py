"""Input schemas for repository calls and API requests.

Category, priority and status are plain strings here; unknown values are
coerced by the records, not rejected by the schema.
"""

from datetime import date, datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from . import __version__, validation


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# Task-related schemas
class TaskCreate(_Schema):
    """Schema for creating a new task."""
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    owner_id: str = Field(..., description="Owning user id")
    assignee_id: Optional[str] = Field(None, description="Assigned user id")
    category: Optional[str] = None
    tags: Optional[Union[str, List[str]]] = Field(None, description="Tag list or comma separated string")
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    dependencies: Optional[List[str]] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, value: Any) -> Optional[date]:
        return validation.coerce_due_date(value)


class TaskUpdate(_Schema):
    """Schema for updating an existing task; only fields that are set are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[date] = None
    assignee_id: Optional[str] = None
    estimated_hours: Optional[float] = None
    tags: Optional[Union[str, List[str]]] = Field(None, description="Tag list or comma separated string")

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, value: Any) -> Optional[date]:
        return validation.coerce_due_date(value)


class TaskFilter(_Schema):
    """Filter criteria, combined with a logical AND."""
    owner_id: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    overdue: bool = False
    due_soon: bool = False


class NoteCreate(_Schema):
    """Schema for adding a note to a task."""
    content: str = Field(..., description="Note text")
    author: Optional[str] = Field(None, description="Note author")


# User-related schemas
class UserCreate(_Schema):
    """Schema for registering a user."""
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Unique email address")
    full_name: Optional[str] = Field(None, description="Display name")


class UserProfileUpdate(_Schema):
    """Schema for profile changes."""
    full_name: Optional[str] = None
    email: Optional[str] = None


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Health check timestamp")
    version: str = Field(default=__version__, description="Application version")
    storage_available: bool = Field(default=True, description="Whether the key-value store accepted writes")
    tasks: int = Field(default=0, description="Number of loaded tasks")
    users: int = Field(default=0, description="Number of loaded users")
