"""Keyset (cursor) pagination over a user's tasks.

Tasks are ordered by ``(created_at, id)``. ``id`` breaks ties between tasks
created in the same instant, so the order is strictly total and a cursor
built from the last task of a page pins an exact position in it. The next
page is "everything strictly after that position", which stays correct when
other requests insert or delete tasks between calls. No offsets are used.

The pager talks to its record store through two reads only:

    store.count(owner_id) -> int
    store.scan(owner_id, after, order, limit) -> list of tasks

``after`` is a :class:`Cursor` or ``None``; the store applies
:func:`seek_predicate` and :func:`order_by` to build its query.
"""
import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import and_, or_

from .config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Cursor:
    """Sort-key position of the last task seen."""
    id: str
    created_at: datetime

    @classmethod
    def from_task(cls, task: Any) -> "Cursor":
        return cls(id=task.id, created_at=task.created_at)


@dataclass
class PageInfo:
    has_next_page: bool = False
    next_cursor: Optional[Cursor] = None
    total_pages: int = 0


@dataclass
class Page:
    nodes: List[Any] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)
    total_count: int = 0


def seek_predicate(model, cursor: Cursor, order: SortOrder):
    """SQL condition selecting rows strictly past ``cursor`` in ``order``.

    The tie-break on ``id`` uses the same direction as ``created_at``.
    """
    if order is SortOrder.DESC:
        return or_(
            model.created_at < cursor.created_at,
            and_(model.created_at == cursor.created_at, model.id < cursor.id),
        )
    return or_(
        model.created_at > cursor.created_at,
        and_(model.created_at == cursor.created_at, model.id > cursor.id),
    )


def order_by(model, order: SortOrder) -> tuple:
    if order is SortOrder.DESC:
        return (model.created_at.desc(), model.id.desc())
    return (model.created_at.asc(), model.id.asc())


def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size)


def paginate(
    store,
    owner_id: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    cursor: Optional[Cursor] = None,
    sort_order: SortOrder = SortOrder.ASC,
) -> Page:
    """Return one page of ``owner_id``'s tasks following ``cursor``.

    ``total_count`` always covers the whole owner scope, regardless of the
    cursor. Errors raised by the store propagate unchanged; nothing is
    retried and no partial page is returned.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size}")

    sort_order = SortOrder(sort_order)
    total_count = store.count(owner_id)
    if total_count == 0:
        return Page()

    # One extra row tells us whether another page exists.
    rows = list(store.scan(owner_id, cursor, sort_order, page_size + 1))
    has_next_page = len(rows) > page_size
    nodes = rows[:page_size]

    next_cursor = Cursor.from_task(nodes[-1]) if nodes else None

    logger.debug(
        "Paginated owner=%s size=%d order=%s cursor=%s -> %d rows, has_next=%s",
        owner_id,
        page_size,
        sort_order.value,
        cursor,
        len(nodes),
        has_next_page,
    )

    return Page(
        nodes=nodes,
        page_info=PageInfo(
            has_next_page=has_next_page,
            next_cursor=next_cursor,
            total_pages=total_pages(total_count, page_size),
        ),
        total_count=total_count,
    )
