"""Validated, immutable inputs accepted by the task workflow engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .models import TaskPriority, TaskStatus

SortField = Literal["dueDate", "createdAt", "priority", "status", "title"]
SortOrder = Literal["asc", "desc"]

SORT_FIELDS: tuple[str, ...] = ("dueDate", "createdAt", "priority", "status", "title")
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


class _Unset:
    """Marker for patch fields the caller did not supply."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class NewTask:
    """Fields for a task about to be created."""
    title: str
    description: str
    due_date: str
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[str] = None


@dataclass(frozen=True)
class TaskPatch:
    """Partial update; fields left as ``UNSET`` are not touched.

    ``assignee_id`` distinguishes an omitted field (``UNSET``) from an explicit
    ``None`` that clears the assignee. The creator is not part of the patch.
    """
    title: Any = UNSET
    description: Any = UNSET
    due_date: Any = UNSET
    priority: Any = UNSET
    status: Any = UNSET
    assignee_id: Any = UNSET

    @property
    def includes_assignee(self) -> bool:
        return self.assignee_id is not UNSET

    def changes(self) -> dict[str, Any]:
        """Return only the supplied fields, keyed by task attribute name."""
        out: dict[str, Any] = {}
        for name in ("title", "description", "due_date", "priority", "status", "assignee_id"):
            value = getattr(self, name)
            if value is not UNSET:
                out[name] = value
        return out


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    creator_id: Optional[str] = None
    assignee_id: Optional[str] = None
    involving_user_id: Optional[str] = None
    overdue: bool = False


@dataclass(frozen=True)
class TaskQuery:
    """Filter, sort and page selection for task listings."""
    filters: TaskFilters = field(default_factory=TaskFilters)
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if self.limit < 1 or self.limit > MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be asc or desc")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page:
    """One page of results plus the counters clients need to paginate."""
    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def pagination(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }
