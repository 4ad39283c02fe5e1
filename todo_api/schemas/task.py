from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase in JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _title_not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("No title provided!")
    return value


Title = Annotated[str, Field(min_length=1), AfterValidator(_title_not_blank)]


class TaskCreate(CamelModel):
    """Schema for creating new tasks."""
    title: Title


class TaskUpdate(CamelModel):
    """Schema for updating an existing task; unset fields are left alone."""
    id: UUID
    title: Optional[Title] = None
    completed: Optional[bool] = None


class TaskDelete(CamelModel):
    ids: List[UUID] = Field(min_length=1)


class Task(CamelModel):
    """Complete task schema with all fields."""
    id: str
    title: str
    completed: bool
    created_at: datetime
    updated_at: datetime
    user_id: str


class DeletedTask(CamelModel):
    id: str
    title: str


class TaskDeleteResponse(CamelModel):
    message: str
    deleted_items: List[DeletedTask]
