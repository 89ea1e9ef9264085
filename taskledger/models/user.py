"""User account record."""

from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .. import validation
from .enums import TaskCategory
from .task import utcnow


def generate_user_id() -> str:
    return f"user_{uuid4().hex}"


class UserPreferences(BaseModel):
    """Per-user preferences; only these keys are recognised."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    theme: str = "light"
    default_category: str = TaskCategory.PERSONAL.value
    email_notifications: bool = True
    language: str = "en"

    @field_validator("default_category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        return validation.coerce_category(value)


class User(BaseModel):
    """User account.

    ``username`` and ``email`` are stored trimmed and lower-cased, which is
    what makes the repository's case-insensitive uniqueness check a plain
    equality test. ``is_active`` only changes through :meth:`activate` and
    :meth:`deactivate`.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=generate_user_id)
    username: str
    email: str
    full_name: str = ""
    role: str = "user"
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    last_login_at: Optional[datetime] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)

    @field_validator("username", mode="before")
    @classmethod
    def _username(cls, value: Any) -> str:
        return validation.normalize_username(value)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: Any) -> str:
        return validation.normalize_email(value)

    @field_validator("full_name", mode="before")
    @classmethod
    def _full_name(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, value: Any) -> str:
        return value or "user"

    @field_validator("preferences", mode="before")
    @classmethod
    def _preferences(cls, value: Any) -> Any:
        return {} if value is None else value

    def update_profile(self, full_name: Optional[str] = None, email: Optional[str] = None) -> None:
        """Change the display name and/or email; the email is re-validated."""
        if email:
            email = validation.normalize_email(email)
        if full_name:
            self.full_name = full_name.strip()
        if email:
            self.email = email

    def update_preferences(self, values: Mapping[str, Any]) -> None:
        """Merge recognised preference keys; anything else is dropped."""
        merged = self.preferences.model_dump()
        merged.update(validation.filter_preferences(values))
        self.preferences = UserPreferences.model_validate(merged)

    def record_login(self) -> None:
        self.last_login_at = utcnow()

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False

    def to_record(self) -> dict:
        """JSON-ready dict with camelCase keys, as written to storage."""
        return self.model_dump(mode="json", by_alias=True)
