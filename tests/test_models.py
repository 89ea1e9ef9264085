"""Tests for the Task and User records."""

import time
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from taskledger.models.enums import TaskStatus
from taskledger.models.task import Task
from taskledger.models.user import User


def make(**fields) -> Task:
    fields.setdefault("title", "Test Task")
    fields.setdefault("owner_id", "user_1")
    return Task(**fields)


class TestTaskModel:
    """Test Task domain model."""

    def test_task_creation_defaults(self):
        """Test task creation with default values."""
        task = make()

        assert task.id.startswith("task_")
        assert task.description == ""
        assert task.category == "personal"
        assert task.priority == "medium"
        assert task.status == "pending"
        assert task.assignee_id == "user_1"
        assert task.tags == []
        assert task.notes == []
        assert task.completed_at is None
        assert task.estimated_hours == 0.0

    def test_task_creation_rejects_blank_title(self):
        """Test a blank title fails validation."""
        with pytest.raises(ValidationError, match="Task title cannot be empty"):
            make(title="   ")

    def test_task_creation_requires_owner(self):
        """Test the owner is required."""
        with pytest.raises(ValueError, match="Owner ID is required"):
            make(owner_id="")

    def test_invalid_values_coerced(self):
        """Test unknown category, priority and status get defaults."""
        task = make(category="hobby", priority="critical", status="done")

        assert task.category == "personal"
        assert task.priority == "medium"
        assert task.status == "pending"

    def test_negative_hours_rejected(self):
        """Test negative estimates are rejected."""
        with pytest.raises(ValidationError, match="estimated_hours cannot be negative"):
            make(estimated_hours=-2)

    def test_self_dependency_rejected(self):
        """Test a task cannot depend on itself."""
        with pytest.raises(ValidationError, match="cannot depend on itself"):
            make(id="task_x", dependencies=["task_x"])

    def test_completed_record_gets_completed_at(self):
        """Test a record built as completed carries a completion time."""
        task = make(status="completed")

        assert task.is_completed
        assert task.completed_at == task.updated_at

    def test_update_timestamp(self):
        """Test mutators refresh updated_at."""
        task = make()
        original_updated_at = task.updated_at

        time.sleep(0.001)
        task.update_title("  Renamed ")

        assert task.title == "Renamed"
        assert task.updated_at > original_updated_at

    def test_update_title_blank_rejected(self):
        """Test blank titles are rejected by the mutator too."""
        task = make()
        with pytest.raises(ValueError, match="Task title cannot be empty"):
            task.update_title("")
        assert task.title == "Test Task"

    def test_status_completion_stamps(self):
        """Test entering completed stamps completed_at and leaving clears it."""
        task = make()

        task.update_status(TaskStatus.COMPLETED.value)
        assert task.completed_at is not None
        assert task.status == "completed"

        task.update_status("in-progress")
        assert task.completed_at is None

        task.mark_completed()
        first = task.completed_at
        task.update_status("completed")
        assert task.completed_at == first

    def test_owner_is_frozen(self):
        """Test the owner cannot be reassigned."""
        task = make()
        with pytest.raises(ValidationError):
            task.owner_id = "user_2"

    def test_assign_to_defaults_to_owner(self):
        """Test clearing the assignee falls back to the owner."""
        task = make(assignee_id="user_2")
        assert task.assignee_id == "user_2"

        task.assign_to(None)
        assert task.assignee_id == "user_1"

    def test_progress_percentage(self):
        """Test progress from actual over estimated hours, capped at 100."""
        task = make()
        assert task.progress_percentage == 0.0

        task.set_estimated_hours(4)
        task.add_time_spent(1)
        task.add_time_spent(-3)
        assert task.actual_hours == 1
        assert task.progress_percentage == 25.0

        task.add_time_spent(10)
        assert task.progress_percentage == 100.0

    def test_tags(self):
        """Test tag helpers keep tags normalized."""
        task = make(tags=["Home", "home", "Errand"])
        assert task.tags == ["home", "errand"]

        task.add_tag(" URGENT ")
        task.remove_tag("Home")
        assert task.tags == ["errand", "urgent"]

    def test_notes(self):
        """Test notes are appended with an id."""
        task = make()
        note = task.add_note(" Called the bank ", author="user_1")

        assert note.id.startswith("note_")
        assert note.content == "Called the bank"
        assert task.notes == [note]

        with pytest.raises(ValueError, match="Note content cannot be empty"):
            task.add_note("  ")
        assert len(task.notes) == 1

    def test_dependencies(self):
        """Test dependency helpers."""
        task = make()
        task.add_dependency("task_a")
        task.add_dependency("task_a")
        assert task.dependencies == ["task_a"]

        with pytest.raises(ValueError):
            task.add_dependency(task.id)

        task.remove_dependency("task_a")
        assert task.dependencies == []


class TestTaskDates:
    """Test due-date derived properties."""

    def test_no_due_date(self):
        """Test undated tasks are neither overdue nor due soon."""
        task = make()

        assert task.days_until_due is None
        assert not task.is_overdue
        assert not task.is_due_soon

    @pytest.mark.parametrize(
        "offset, overdue, due_soon",
        [(-1, True, False), (0, False, True), (3, False, True), (4, False, False)],
    )
    def test_due_windows(self, offset, overdue, due_soon):
        """Test the overdue and due-soon windows."""
        task = make(due_date=date.today() + timedelta(days=offset))

        assert task.days_until_due == offset
        assert task.is_overdue is overdue
        assert task.is_due_soon is due_soon

    def test_completed_never_overdue(self):
        """Test completed tasks are never overdue."""
        task = make(due_date=date.today() - timedelta(days=5), status="completed")
        assert not task.is_overdue

    def test_set_due_date_from_string(self):
        """Test due dates set from ISO strings."""
        task = make()
        task.set_due_date("2031-02-03T12:00:00Z")
        assert task.due_date == date(2031, 2, 3)

        task.set_due_date(None)
        assert task.due_date is None


class TestTaskSerialization:
    """Test the camelCase storage record."""

    def test_record_uses_camel_case(self):
        """Test serialization to the stored record."""
        task = make(due_date=date(2030, 1, 2), estimated_hours=2)
        record = task.to_record()

        assert record["ownerId"] == "user_1"
        assert record["assigneeId"] == "user_1"
        assert record["dueDate"] == "2030-01-02"
        assert record["estimatedHours"] == 2.0
        assert record["status"] == "pending"
        assert "owner_id" not in record

    def test_record_round_trip(self):
        """Test a stored record rebuilds an equal task."""
        task = make(tags=["a"], due_date=date(2030, 1, 2))
        task.add_note("hello")

        restored = Task.model_validate(task.to_record())

        assert restored == task

    def test_loaded_record_is_coerced(self):
        """Test stored values go through the same coercion as new input."""
        restored = Task.model_validate({
            "id": "task_old",
            "title": " Legacy ",
            "ownerId": "user_1",
            "category": "misc",
            "status": "archived",
            "tags": "A,b",
            "notes": None,
        })

        assert restored.title == "Legacy"
        assert restored.category == "personal"
        assert restored.status == "pending"
        assert restored.tags == ["a", "b"]
        assert restored.notes == []


class TestUserModel:
    """Test User account model."""

    def test_user_defaults(self):
        """Test user creation defaults."""
        user = User(username=" Alice ", email="Alice@Example.com")

        assert user.id.startswith("user_")
        assert user.username == "alice"
        assert user.email == "alice@example.com"
        assert user.role == "user"
        assert user.is_active
        assert user.last_login_at is None
        assert user.preferences.theme == "light"
        assert user.preferences.default_category == "personal"
        assert user.preferences.email_notifications is True
        assert user.preferences.language == "en"

    def test_invalid_email_rejected(self):
        """Test malformed emails are rejected."""
        with pytest.raises(ValidationError, match="Email is not valid"):
            User(username="alice", email="not-an-email")

    def test_update_profile(self):
        """Test profile changes, with email re-validated."""
        user = User(username="alice", email="alice@example.com")
        user.update_profile(full_name=" Alice Smith ", email="ALICE@work.org")

        assert user.full_name == "Alice Smith"
        assert user.email == "alice@work.org"

        with pytest.raises(ValueError, match="Email is not valid"):
            user.update_profile(full_name="Other", email="broken")
        assert user.full_name == "Alice Smith"

    def test_update_preferences_merges(self):
        """Test preferences merge and unknown keys are dropped."""
        user = User(username="alice", email="alice@example.com")
        user.update_preferences({"theme": "dark", "widgets": ["clock"]})
        user.update_preferences({"defaultCategory": "work"})

        assert user.preferences.theme == "dark"
        assert user.preferences.default_category == "work"
        assert not hasattr(user.preferences, "widgets")

    def test_activation_and_login(self):
        """Test account lifecycle helpers."""
        user = User(username="alice", email="alice@example.com")

        user.deactivate()
        assert not user.is_active
        user.activate()
        assert user.is_active

        user.record_login()
        assert user.last_login_at is not None

    def test_record_uses_camel_case(self):
        """Test the stored user record."""
        record = User(username="alice", email="alice@example.com").to_record()

        assert record["isActive"] is True
        assert record["lastLoginAt"] is None
        assert record["preferences"]["defaultCategory"] == "personal"
