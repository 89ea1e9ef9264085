"""Task management CRUD routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import get_task_repository
from ..exceptions import PersistenceError
from ..models.task import Task
from ..repositories.task_repository import TaskRepository
from ..schemas import NoteCreate, TaskCreate, TaskFilter, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(task_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {task_id} not found")


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """Create a new task.

    Args:
        task_data: Task creation data
        repository: Task repository instance

    Returns:
        Created task

    Raises:
        HTTPException: If the task fails validation
    """
    try:
        logger.info(f"Creating new task: {task_data.title}")
        return repository.create(task_data)

    except PersistenceError:
        raise
    except ValueError as e:
        logger.error(f"Validation error creating task: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/", response_model=List[Task])
async def list_tasks(
    owner_id: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    overdue: bool = Query(False),
    due_soon: bool = Query(False),
    sort_by: str = Query("created_at", description="title, priority, due_date or created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    repository: TaskRepository = Depends(get_task_repository)
) -> List[Task]:
    """List tasks matching every given filter, sorted.

    Args:
        owner_id: Only tasks owned by this user
        category: Exact category match
        status_filter: Exact status match
        priority: Exact priority match
        overdue: Only overdue tasks
        due_soon: Only tasks due within three days
        sort_by: Sort field
        order: ``asc`` or ``desc``
        repository: Task repository instance

    Returns:
        Matching tasks
    """
    criteria = TaskFilter(
        owner_id=owner_id,
        category=category,
        status=status_filter,
        priority=priority,
        overdue=overdue,
        due_soon=due_soon,
    )
    logger.debug(f"Listing tasks with filters: {criteria.model_dump(exclude_defaults=True)}")

    return repository.sort(repository.filter(criteria), sort_by, order)


@router.get("/search/", response_model=List[Task])
async def search_tasks(
    q: str = Query(..., description="Search query"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    repository: TaskRepository = Depends(get_task_repository)
) -> List[Task]:
    """Search tasks by title, description and tags.

    Args:
        q: Search query
        limit: Maximum number of results
        repository: Task repository instance

    Returns:
        Matching tasks
    """
    logger.debug(f"Searching tasks with query: {q}")

    tasks = repository.search(q)
    return tasks[:limit] if limit else tasks


@router.get("/stats/", response_model=dict)
async def get_task_statistics(
    owner_id: Optional[str] = Query(None),
    repository: TaskRepository = Depends(get_task_repository)
) -> dict:
    """Get task statistics, optionally for one owner."""
    logger.debug(f"Getting task statistics for owner={owner_id}")
    return repository.get_stats(owner_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """Get a specific task by ID.

    Raises:
        HTTPException: If task not found
    """
    logger.debug(f"Getting task: {task_id}")

    task = repository.find_by_id(task_id)
    if task is None:
        raise _not_found(task_id)
    return task


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """Update a task.

    Args:
        task_id: Task ID
        task_data: Fields to change; fields left out are kept
        repository: Task repository instance

    Returns:
        Updated task

    Raises:
        HTTPException: If task not found or update fails validation
    """
    try:
        logger.info(f"Updating task: {task_id}")

        task = repository.update(task_id, task_data)
        if task is None:
            raise _not_found(task_id)
        return task

    except (HTTPException, PersistenceError):
        raise
    except ValueError as e:
        logger.error(f"Validation error updating task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    repository: TaskRepository = Depends(get_task_repository)
):
    """Delete a task.

    Raises:
        HTTPException: If task not found
    """
    logger.info(f"Deleting task: {task_id}")

    if not repository.delete(task_id):
        raise _not_found(task_id)


@router.post("/{task_id}/notes", response_model=Task, status_code=status.HTTP_201_CREATED)
async def add_task_note(
    task_id: str,
    note: NoteCreate,
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """Append a note to a task."""
    try:
        task = repository.add_note(task_id, note.content, note.author)
        if task is None:
            raise _not_found(task_id)
        return task

    except (HTTPException, PersistenceError):
        raise
    except ValueError as e:
        logger.error(f"Validation error adding note to task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
