from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..database import get_db
from ..models import User
from ..pagination import Cursor, SortOrder, paginate
from ..schemas.pagination import TaskPage
from ..schemas.task import Task as TaskSchema, TaskCreate, TaskDelete, TaskDeleteResponse, TaskUpdate
from ..store import TaskStore
from .auth import get_current_user

router = APIRouter()


def get_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


def get_cursor(
    id: Optional[str] = Query(default=None, description="Id of the last task seen"),
    created_at: Optional[datetime] = Query(
        default=None,
        alias="createdAt",
        description="Creation time of the last task seen",
    ),
) -> Optional[Cursor]:
    """Build the page cursor from the query string; both parts or neither."""
    if id and created_at is None:
        raise HTTPException(status_code=422, detail="'createdAt' is required.")
    if created_at is not None and not id:
        raise HTTPException(status_code=422, detail="'id' is required.")
    if created_at is None:
        return None

    # A timestamp without an offset is read as UTC.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    else:
        created_at = created_at.astimezone(timezone.utc)
    return Cursor(id=id, created_at=created_at)


@router.get("", response_model=TaskPage)
def list_tasks(
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, alias="pageSize"),
    order_by: SortOrder = Query(default=SortOrder.ASC, alias="orderBy"),
    cursor: Optional[Cursor] = Depends(get_cursor),
    current_user: User = Depends(get_current_user),
    store: TaskStore = Depends(get_store),
):
    """List the current user's tasks one page at a time.

    Pass ``pageInfo.nextCursor`` of the previous response back as the ``id``
    and ``createdAt`` query parameters to get the following page.
    Page sizes above ``MAX_PAGE_SIZE`` are clamped to it.
    """
    page_size = min(page_size, MAX_PAGE_SIZE)
    page = paginate(store, current_user.id, page_size, cursor, order_by)
    return TaskPage.model_validate(page)


@router.post("/add", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    current_user: User = Depends(get_current_user),
    store: TaskStore = Depends(get_store),
):
    """Create a new task for the user."""
    return store.create(current_user.id, task.title)


@router.put("/update", response_model=TaskSchema)
def update_task(
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    store: TaskStore = Depends(get_store),
):
    """Update the title and/or completion flag of a task."""
    task = store.get(current_user.id, str(task_update.id))
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    changes = task_update.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})
    return store.update(task, **changes)


@router.delete("", response_model=TaskDeleteResponse)
def delete_tasks(
    payload: TaskDelete,
    current_user: User = Depends(get_current_user),
    store: TaskStore = Depends(get_store),
):
    """Delete several of the user's tasks at once."""
    deleted = store.delete_many(current_user.id, (str(task_id) for task_id in payload.ids))
    return {
        "message": f"{len(deleted)} item/s deleted successfully",
        "deleted_items": deleted,
    }
