from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Index
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp; datetime columns refuse naive values."""
    return datetime.now(timezone.utc)


class Task(SQLModel, table=True):
    """A single to-do item owned by one user.

    ``(created_at, id)`` is the pagination key, so the composite index below
    leads with the owner and then follows the sort order.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_created_id", "user_id", "created_at", "id"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)
    user_id: str = Field(foreign_key="users.id", nullable=False)

    # Relationship back to user
    user: Optional["User"] = Relationship(back_populates="tasks")
