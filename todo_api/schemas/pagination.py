from datetime import datetime
from typing import List, Optional

from .task import CamelModel, Task


class CursorSchema(CamelModel):
    id: str
    created_at: datetime


class PageInfoSchema(CamelModel):
    has_next_page: bool
    next_cursor: Optional[CursorSchema] = None
    total_pages: int


class TaskPage(CamelModel):
    """One page of tasks, as returned by ``GET /api/v1/todos``."""
    nodes: List[Task]
    page_info: PageInfoSchema
    total_count: int
