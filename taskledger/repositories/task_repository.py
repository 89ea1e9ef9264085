"""Task repository: CRUD, filtering, sorting, search and statistics."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..models.enums import PRIORITY_RANK, STATS_STATUSES, TaskPriority
from ..models.task import Task
from ..schemas import TaskCreate, TaskFilter, TaskUpdate
from .base import EntityStore

logger = logging.getLogger(__name__)

# update() field -> Task mutator
_MUTATORS: Dict[str, Callable[[Task, Any], None]] = {
    "title": Task.update_title,
    "description": Task.update_description,
    "category": Task.update_category,
    "priority": Task.update_priority,
    "status": Task.update_status,
    "due_date": Task.set_due_date,
    "assignee_id": Task.assign_to,
    "estimated_hours": Task.set_estimated_hours,
    "tags": Task.set_tags,
}

_SORT_FIELDS = {
    "title": "title",
    "priority": "priority",
    "due_date": "due_date",
    "dueDate": "due_date",
    "created_at": "created_at",
    "createdAt": "created_at",
}

_SORT_KEYS: Dict[str, Callable[[Task], Any]] = {
    "title": lambda task: task.title.lower(),
    "priority": lambda task: PRIORITY_RANK.get(task.priority, 0),
    "created_at": lambda task: task.created_at,
}


class TaskRepository(EntityStore[Task]):
    """Repository for Task records persisted under the ``tasks`` key."""

    entity_name = "tasks"
    model = Task

    def create(self, task_data: Union[TaskCreate, Mapping[str, Any]]) -> Task:
        """Create and persist a new task.

        Args:
            task_data: Task creation data (schema or plain mapping)

        Returns:
            Created task

        Raises:
            ValueError: If the title is blank, the owner is missing or any
                other field fails validation; nothing is inserted
            PersistenceError: If the task was added but could not be saved
        """
        if not isinstance(task_data, TaskCreate):
            task_data = TaskCreate.model_validate(task_data)

        task = Task(**task_data.model_dump(exclude_none=True))
        self._insert(task)

        logger.info(f"Created task {task.id}: {task.title}")
        return task

    def update(self, task_id: str, updates: Union[TaskUpdate, Mapping[str, Any]]) -> Optional[Task]:
        """Apply the fields present in ``updates`` through the task's mutators.

        The changes are tried on a copy first; only when every field passes
        are they written back onto the stored task, so references obtained
        from ``create`` or ``find_by_id`` stay current and a failing field
        leaves the task untouched. ``owner_id`` and unknown keys are ignored.

        Args:
            task_id: Task ID
            updates: Fields to change

        Returns:
            Updated task, or None if no task has this ID
        """
        task = self.find_by_id(task_id)
        if task is None:
            logger.warning(f"Task {task_id} not found for update")
            return None

        if not isinstance(updates, TaskUpdate):
            updates = TaskUpdate.model_validate(updates)

        changed = task.model_copy(deep=True)
        for field, value in updates.model_dump(exclude_unset=True).items():
            _MUTATORS[field](changed, value)

        for name, field_info in Task.model_fields.items():
            if not field_info.frozen:
                setattr(task, name, getattr(changed, name))
        self._persist()

        logger.info(f"Updated task {task_id}: {task.title}")
        return task

    def delete(self, task_id: str) -> bool:
        """Delete a task.

        Returns:
            True if task was deleted, False if not found
        """
        deleted = self._discard(task_id)
        if deleted:
            logger.info(f"Deleted task {task_id}")
        else:
            logger.warning(f"Task {task_id} not found for deletion")
        return deleted

    def add_note(self, task_id: str, content: str, author: Optional[str] = None) -> Optional[Task]:
        """Append a note to a task; None if the task does not exist."""
        task = self.find_by_id(task_id)
        if task is None:
            return None
        task.add_note(content, author)
        self._persist()
        return task

    def clear(self) -> int:
        """Remove every task.

        Returns:
            Number of tasks that were removed
        """
        count = len(self._items)
        self._items.clear()
        self._persist()
        logger.warning(f"Cleared all {count} tasks")
        return count

    def filter(self, criteria: Union[TaskFilter, Mapping[str, Any], None] = None) -> List[Task]:
        """Return tasks matching every given criterion.

        ``owner_id``, ``category``, ``status`` and ``priority`` are exact
        matches; ``overdue=True`` keeps overdue tasks and ``due_soon=True``
        keeps tasks due within the next three days (today included). Tasks
        without a due date never match either date criterion.
        """
        if criteria is None:
            criteria = TaskFilter()
        elif not isinstance(criteria, TaskFilter):
            criteria = TaskFilter.model_validate(criteria)

        results = self.find_all()

        if criteria.owner_id:
            results = [t for t in results if t.owner_id == criteria.owner_id]
        if criteria.category:
            results = [t for t in results if t.category == criteria.category]
        if criteria.status:
            results = [t for t in results if t.status == criteria.status]
        if criteria.priority:
            results = [t for t in results if t.priority == criteria.priority]
        if criteria.overdue:
            results = [t for t in results if t.is_overdue]
        if criteria.due_soon:
            results = [t for t in results if t.is_due_soon]

        logger.debug(f"Filter {criteria.model_dump(exclude_defaults=True)} matched {len(results)} tasks")
        return results

    def sort(self, tasks: Iterable[Task], field: str = "created_at", order: str = "desc") -> List[Task]:
        """Return ``tasks`` ordered by ``field``.

        Args:
            tasks: Tasks to order (not modified)
            field: ``title`` (case-insensitive), ``priority`` (low < medium <
                high < urgent), ``due_date`` or ``created_at``; anything else
                falls back to ``created_at``
            order: ``"asc"`` or ``"desc"``

        Tasks without a due date always come last when sorting by
        ``due_date``. Equal keys are ordered by id, in the same direction.
        """
        tasks = list(tasks)
        key_name = _SORT_FIELDS.get(field, "created_at")
        reverse = order != "asc"

        if key_name == "due_date":
            dated = [t for t in tasks if t.due_date is not None]
            undated = [t for t in tasks if t.due_date is None]
            return (
                sorted(dated, key=lambda t: (t.due_date, t.id), reverse=reverse)
                + sorted(undated, key=lambda t: t.id, reverse=reverse)
            )

        key = _SORT_KEYS[key_name]
        return sorted(tasks, key=lambda t: (key(t), t.id), reverse=reverse)

    def search(self, query: str) -> List[Task]:
        """Case-insensitive substring search over title, description and tags.

        A plain substring test, so an empty query matches every task.
        """
        term = query.lower()
        results = [
            task
            for task in self._items.values()
            if term in task.title.lower()
            or term in task.description.lower()
            or any(term in tag for tag in task.tags)
        ]

        logger.debug(f"Found {len(results)} tasks matching query: {query}")
        return results

    def get_stats(self, owner_id: Optional[str] = None) -> Dict[str, Any]:
        """Aggregate counts over all tasks, or over one owner's tasks.

        Returns:
            ``total``, ``by_status`` (pending, in-progress, blocked,
            completed), ``by_priority``, ``overdue``, ``due_soon`` and
            ``completed``
        """
        tasks = self.filter({"owner_id": owner_id}) if owner_id else self.find_all()

        return {
            "total": len(tasks),
            "by_status": {status: sum(1 for t in tasks if t.status == status) for status in STATS_STATUSES},
            "by_priority": {p.value: sum(1 for t in tasks if t.priority == p.value) for p in TaskPriority},
            "overdue": sum(1 for t in tasks if t.is_overdue),
            "due_soon": sum(1 for t in tasks if t.is_due_soon),
            "completed": sum(1 for t in tasks if t.is_completed),
        }
