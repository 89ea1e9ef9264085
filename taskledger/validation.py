"""Validation and coercion rules for Task and User values.

The record classes in ``taskledger.models`` call into this module from their
field validators (so data loaded from storage is coerced the same way as new
input) and from their mutator methods. Rules come in two flavours:

- *coercions* silently replace an unrecognised value with a default
  (category, priority, status);
- *validations* raise :class:`~taskledger.exceptions.DomainValidationError`
  (empty title, missing owner, malformed email, negative hours, ...).
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import DomainValidationError
from .models.enums import TaskCategory, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_CATEGORY = TaskCategory.PERSONAL.value
DEFAULT_PRIORITY = TaskPriority.MEDIUM.value
DEFAULT_STATUS = TaskStatus.PENDING.value

_CATEGORIES = {c.value for c in TaskCategory}
_PRIORITIES = {p.value for p in TaskPriority}
_STATUSES = {s.value for s in TaskStatus}

# Recognised preference keys, keyed by every accepted spelling.
PREFERENCE_KEYS = {
    "theme": "theme",
    "default_category": "default_category",
    "defaultCategory": "default_category",
    "email_notifications": "email_notifications",
    "emailNotifications": "email_notifications",
    "language": "language",
}


def _raw(value: Any) -> Any:
    """Unwrap enum members to their plain value."""
    return getattr(value, "value", value)


# ---- Task rules ----

def normalize_title(value: Any) -> str:
    """Return the trimmed title, raising if it is missing or blank."""
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError("Task title cannot be empty")
    return value.strip()


def normalize_description(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def require_owner_id(value: Any) -> str:
    if value is None or not str(value).strip():
        raise DomainValidationError("Owner ID is required")
    return str(value).strip()


def coerce_category(value: Any) -> str:
    raw = _raw(value)
    if raw is None or raw == "":
        return DEFAULT_CATEGORY
    if not isinstance(raw, str) or raw not in _CATEGORIES:
        logger.warning(f"Category {raw!r} is not valid, using '{DEFAULT_CATEGORY}'")
        return DEFAULT_CATEGORY
    return raw


def coerce_priority(value: Any) -> str:
    raw = _raw(value)
    return raw if isinstance(raw, str) and raw in _PRIORITIES else DEFAULT_PRIORITY


def coerce_status(value: Any) -> str:
    raw = _raw(value)
    return raw if isinstance(raw, str) and raw in _STATUSES else DEFAULT_STATUS


def normalize_tags(value: Any) -> List[str]:
    """Lower-case, trim and de-duplicate tags, keeping first-seen order.

    A comma separated string is accepted as well as a list of strings.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        raise DomainValidationError("Tags must be a list of strings")
    tags: List[str] = []
    for tag in value:
        if tag is None:
            continue
        if not isinstance(tag, str):
            raise DomainValidationError(f"Tag {tag!r} is not a string")
        normalized = tag.strip().lower()
        if normalized and normalized not in tags:
            tags.append(normalized)
    return tags


def coerce_due_date(value: Any) -> Optional[date]:
    """Turn a date, datetime or ISO-8601 string into a calendar date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            raise DomainValidationError(f"Invalid due date: {value!r}")
    raise DomainValidationError(f"Invalid due date: {value!r}")


def require_non_negative_hours(value: Any, field: str = "hours") -> float:
    if value is None:
        return 0.0
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise DomainValidationError(f"{field} must be a number")
    if hours < 0:
        raise DomainValidationError(f"{field} cannot be negative")
    return hours


def normalize_dependencies(value: Any, task_id: Optional[str] = None) -> List[str]:
    """De-duplicate dependency ids and reject a task depending on itself."""
    if value is None:
        return []
    dependencies: List[str] = []
    for dep in value:
        dep = str(dep).strip()
        if not dep:
            continue
        if task_id is not None and dep == task_id:
            raise DomainValidationError("A task cannot depend on itself")
        if dep not in dependencies:
            dependencies.append(dep)
    return dependencies


def require_note_content(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError("Note content cannot be empty")
    return value.strip()


def days_until(due: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``today`` to ``due``; negative once the date has passed."""
    if due is None:
        return None
    today = today or date.today()
    return (due - today).days


# ---- User rules ----

def normalize_username(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError("Username is required")
    return value.strip().lower()


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))


def normalize_email(value: Any) -> str:
    if not is_valid_email(value):
        raise DomainValidationError("Email is not valid")
    return value.strip().lower()


def filter_preferences(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keep only recognised preference keys, mapped to their canonical name."""
    if not values:
        return {}
    filtered: Dict[str, Any] = {}
    for key, value in values.items():
        canonical = PREFERENCE_KEYS.get(key)
        if canonical is None:
            logger.debug(f"Dropping unknown preference '{key}'")
            continue
        if canonical == "default_category":
            value = coerce_category(value)
        elif canonical == "email_notifications":
            value = bool(value)
        filtered[canonical] = value
    return filtered
