"""Task persistence scoped to a single owner.

Every query here filters on ``user_id``; callers never see another user's
rows through a :class:`TaskStore`.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .models import Task
from .models.task import utcnow
from .pagination import Cursor, SortOrder, order_by, seek_predicate

logger = logging.getLogger(__name__)


class TaskStore:
    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, owner_id: str):
        return self.db.query(Task).filter(Task.user_id == owner_id)

    # Reads used by the pager

    def count(self, owner_id: str) -> int:
        return (
            self.db.query(func.count(Task.id))
            .filter(Task.user_id == owner_id)
            .scalar()
        )

    def scan(
        self,
        owner_id: str,
        after: Optional[Cursor],
        order: SortOrder,
        limit: int,
    ) -> List[Task]:
        query = self._scoped(owner_id)
        if after is not None:
            query = query.filter(seek_predicate(Task, after, order))
        return query.order_by(*order_by(Task, order)).limit(limit).all()

    # CRUD

    def get(self, owner_id: str, task_id: str) -> Optional[Task]:
        return self._scoped(owner_id).filter(Task.id == task_id).first()

    def create(self, owner_id: str, title: str, completed: bool = False) -> Task:
        task = Task(title=title, completed=completed, user_id=owner_id)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info("Created task %s for user %s", task.id, owner_id)
        return task

    def update(self, task: Task, **changes) -> Task:
        for name, value in changes.items():
            setattr(task, name, value)
        task.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(task)
        logger.info("Updated task %s (%s)", task.id, ", ".join(sorted(changes)) or "touch")
        return task

    def delete_many(self, owner_id: str, task_ids: Iterable[str]) -> List[dict]:
        """Delete the owner's tasks among ``task_ids``; return ``{id, title}`` of each.

        Ids that are unknown or belong to another user are ignored.
        """
        ids = list(task_ids)
        if not ids:
            return []
        tasks = self._scoped(owner_id).filter(Task.id.in_(ids)).all()
        deleted = [{"id": task.id, "title": task.title} for task in tasks]
        for task in tasks:
            self.db.delete(task)
        self.db.commit()
        logger.info("Deleted %d of %d requested tasks for user %s", len(tasks), len(ids), owner_id)
        return deleted
