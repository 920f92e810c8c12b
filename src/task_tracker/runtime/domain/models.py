"""Domain model dataclasses and normalization helpers."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, cast


TaskPriority = Literal["Low", "Medium", "High", "Urgent"]
TaskStatus = Literal["To Do", "In Progress", "Review", "Completed"]
NotificationKind = Literal["task_assigned", "task_updated"]

PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High", "Urgent")
STATUSES: tuple[str, ...] = ("To Do", "In Progress", "Review", "Completed")
NOTIFICATION_KINDS: tuple[str, ...] = ("task_assigned", "task_updated")

DEFAULT_PRIORITY: TaskPriority = "Medium"
DEFAULT_STATUS: TaskStatus = "To Do"
COMPLETED: TaskStatus = "Completed"

TITLE_MAX_LENGTH = 100


def now_iso() -> str:
    """Get the current UTC timestamp formatted as ISO-8601 text."""
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 text into an aware UTC datetime, or ``None`` when invalid."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


def new_user_id() -> str:
    return _id("user")


def new_task_id() -> str:
    return _id("task")


def new_notification_id() -> str:
    return _id("ntf")


def priority_rank(priority: str) -> int:
    """Rank a priority so that ``Low`` sorts first and ``Urgent`` last."""
    try:
        return PRIORITIES.index(priority)
    except ValueError:
        return len(PRIORITIES)


def status_rank(status: str) -> int:
    """Rank a status in workflow order, ``To Do`` first."""
    try:
        return STATUSES.index(status)
    except ValueError:
        return len(STATUSES)


@dataclass
class User:
    """Registered account that can create, own and receive tasks."""
    id: str = field(default_factory=new_user_id)
    email: str = ""
    name: str = ""
    password_hash: str = ""
    is_verified: bool = False
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the user, credential hash included, for persistence."""
        return asdict(self)

    def public_dict(self) -> dict[str, Any]:
        """Profile view without credential material."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "isVerified": self.is_verified,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def summary(self) -> dict[str, str]:
        """Display reference used when a task resolves its creator or assignee."""
        return {"id": self.id, "name": self.name, "email": self.email}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Deserialize a user, normalizing the email to lowercase."""
        return cls(
            id=str(data.get("id") or new_user_id()),
            email=str(data.get("email") or "").strip().lower(),
            name=str(data.get("name") or ""),
            password_hash=str(data.get("password_hash") or ""),
            is_verified=bool(data.get("is_verified", False)),
            created_at=str(data.get("created_at") or now_iso()),
            updated_at=str(data.get("updated_at") or now_iso()),
        )


@dataclass
class Task:
    """Unit of trackable work owned by its creator."""
    id: str = field(default_factory=new_task_id)
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: TaskPriority = DEFAULT_PRIORITY
    status: TaskStatus = DEFAULT_STATUS
    creator_id: str = ""
    assignee_id: Optional[str] = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Serialize a task to a dictionary payload."""
        return asdict(self)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Return whether the due date has strictly passed on an unfinished task."""
        if self.status == COMPLETED:
            return False
        due = parse_iso(self.due_date)
        if due is None:
            return False
        reference = now or datetime.now(timezone.utc)
        return due < reference

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize and normalize a task from persisted data."""
        priority = str(data.get("priority") or DEFAULT_PRIORITY)
        if priority not in PRIORITIES:
            priority = DEFAULT_PRIORITY
        status = str(data.get("status") or DEFAULT_STATUS)
        if status not in STATUSES:
            status = DEFAULT_STATUS
        assignee = data.get("assignee_id")
        return cls(
            id=str(data.get("id") or new_task_id()),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            due_date=str(data.get("due_date") or ""),
            priority=cast(TaskPriority, priority),
            status=cast(TaskStatus, status),
            creator_id=str(data.get("creator_id") or ""),
            assignee_id=(str(assignee) if assignee else None),
            created_at=str(data.get("created_at") or now_iso()),
            updated_at=str(data.get("updated_at") or now_iso()),
        )


@dataclass
class Notification:
    """In-app record of an assignment event addressed to one recipient."""
    id: str = field(default_factory=new_notification_id)
    user_id: str = ""
    kind: NotificationKind = "task_assigned"
    message: str = ""
    task_id: str = ""
    is_read: bool = False
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the notification to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        """Deserialize a notification from persisted storage."""
        kind = str(data.get("kind") or "task_assigned")
        if kind not in NOTIFICATION_KINDS:
            kind = "task_assigned"
        return cls(
            id=str(data.get("id") or new_notification_id()),
            user_id=str(data.get("user_id") or ""),
            kind=cast(NotificationKind, kind),
            message=str(data.get("message") or ""),
            task_id=str(data.get("task_id") or ""),
            is_read=bool(data.get("is_read", False)),
            created_at=str(data.get("created_at") or now_iso()),
        )
