"""File-backed repository implementations for runtime state."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generic, List, Optional, TypeVar

from ...io_utils import FileLock, atomic_write_yaml, load_yaml
from ..domain.inputs import Page, TaskFilters, TaskQuery
from ..domain.models import COMPLETED, Notification, Task, User, now_iso, parse_iso, priority_rank, status_rank
from ..errors import ConflictError
from .interfaces import NotificationRepository, TaskRepository, UserRepository

T = TypeVar("T")

SCHEMA_VERSION = 1

_MUTABLE_TASK_FIELDS = {"title", "description", "due_date", "priority", "status", "assignee_id"}


class _YamlCollectionRepo(Generic[T]):
    def __init__(
        self,
        path: Path,
        lock_path: Path,
        key: str,
        loader: Callable[[dict[str, Any]], T],
        dumper: Callable[[T], dict[str, Any]],
    ) -> None:
        """Initialize the YamlCollectionRepo.

        Args:
            path (Path): YAML file path containing this repository collection.
            lock_path (Path): Lock file path used for cross-process synchronization.
            key (str): Top-level YAML key that stores serialized collection items.
            loader (Callable[[dict[str, Any]], T]): Callable converting raw dictionaries
                into domain models.
            dumper (Callable[[T], dict[str, Any]]): Callable converting domain models
                into dictionaries for persistence.
        """
        self._path = path
        self._lock = FileLock(lock_path)
        self._thread_lock = threading.RLock()
        self._key = key
        self._loader = loader
        self._dumper = dumper

    def _load(self) -> list[T]:
        raw = load_yaml(self._path)
        if not isinstance(raw, dict):
            return []
        items = raw.get(self._key, [])
        if not isinstance(items, list):
            return []
        return [self._loader(item) for item in items if isinstance(item, dict)]

    def _save(self, items: list[T]) -> None:
        payload = {"version": SCHEMA_VERSION, self._key: [self._dumper(item) for item in items]}
        atomic_write_yaml(self._path, payload)

    def read(self) -> list[T]:
        with self._thread_lock:
            with self._lock:
                return self._load()


class FileUserRepository(UserRepository):
    """YAML-backed user directory."""
    def __init__(self, path: Path, lock_path: Path) -> None:
        """Initialize the FileUserRepository.

        Args:
            path (Path): YAML file path for user records.
            lock_path (Path): Lock file path used while mutating user data.
        """
        self._repo = _YamlCollectionRepo[User](path, lock_path, "users", loader=User.from_dict, dumper=lambda u: u.to_dict())

    def list(self) -> list[User]:
        return self._repo.read()

    def get(self, user_id: str) -> Optional[User]:
        for user in self.list():
            if user.id == user_id:
                return user
        return None

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = str(email or "").strip().lower()
        for user in self.list():
            if user.email == wanted:
                return user
        return None

    def upsert(self, user: User) -> User:
        """Insert or update a user, enforcing email uniqueness.

        Args:
            user (User): User model to insert or replace by id.

        Returns:
            User: Persisted user record after timestamps are refreshed.

        Raises:
            ConflictError: If a different user already holds the email.
        """
        user.email = user.email.strip().lower()
        with self._repo._thread_lock:
            with self._repo._lock:
                users = self._repo._load()
                for existing in users:
                    if existing.email == user.email and existing.id != user.id:
                        raise ConflictError("Duplicate entry. This value already exists.")
                for idx, existing in enumerate(users):
                    if existing.id == user.id:
                        user.updated_at = now_iso()
                        users[idx] = user
                        break
                else:
                    users.append(user)
                self._repo._save(users)
        return user


def _matches(task: Task, filters: TaskFilters, now: datetime) -> bool:
    if filters.status and task.status != filters.status:
        return False
    if filters.priority and task.priority != filters.priority:
        return False
    if filters.creator_id and task.creator_id != filters.creator_id:
        return False
    if filters.assignee_id and task.assignee_id != filters.assignee_id:
        return False
    if filters.involving_user_id and filters.involving_user_id not in (task.creator_id, task.assignee_id):
        return False
    if filters.overdue and not task.is_overdue(now):
        return False
    return True


def _timestamp(value: str) -> float:
    parsed = parse_iso(value)
    return parsed.timestamp() if parsed else float("inf")


def _sort_key(sort_by: str) -> Callable[[Task], tuple[Any, ...]]:
    if sort_by == "dueDate":
        return lambda t: (_timestamp(t.due_date), _timestamp(t.created_at), t.id)
    if sort_by == "priority":
        return lambda t: (priority_rank(t.priority), _timestamp(t.created_at), t.id)
    if sort_by == "status":
        return lambda t: (status_rank(t.status), _timestamp(t.created_at), t.id)
    if sort_by == "title":
        return lambda t: (t.title.lower(), _timestamp(t.created_at), t.id)
    return lambda t: (_timestamp(t.created_at), t.id)


class FileTaskRepository(TaskRepository):
    """YAML-backed task repository with coarse file/process locking."""
    def __init__(self, path: Path, lock_path: Path) -> None:
        """Initialize the FileTaskRepository.

        Args:
            path (Path): YAML file path for task records.
            lock_path (Path): Lock file path used while mutating task data.
        """
        self._repo = _YamlCollectionRepo[Task](path, lock_path, "tasks", loader=Task.from_dict, dumper=lambda t: t.to_dict())

    def list(self) -> list[Task]:
        """Load all persisted tasks.

        Returns:
            list[Task]: All persisted task records.
        """
        return self._repo.read()

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.list():
            if task.id == task_id:
                return task
        return None

    def create(self, task: Task) -> Task:
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                stamp = now_iso()
                task.created_at = stamp
                task.updated_at = stamp
                tasks.append(task)
                self._repo._save(tasks)
        return task

    def update(self, task_id: str, changes: dict[str, Any]) -> Optional[Task]:
        """Apply ``changes`` to one task under the collection lock.

        Only mutable task attributes are applied; the creator and timestamps are
        never taken from ``changes``.

        Args:
            task_id (str): Identifier for the target task.
            changes (dict[str, Any]): Attribute names mapped to new values.

        Returns:
            Optional[Task]: Updated task, or `None` when no task matches.
        """
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                for task in tasks:
                    if task.id != task_id:
                        continue
                    for name, value in changes.items():
                        if name in _MUTABLE_TASK_FIELDS:
                            setattr(task, name, value)
                    task.updated_at = now_iso()
                    self._repo._save(tasks)
                    return task
        return None

    def delete(self, task_id: str) -> bool:
        """Delete a task by id.

        Args:
            task_id (str): Identifier for the target task.

        Returns:
            bool: `True` when the operation succeeds, otherwise `False`.
        """
        with self._repo._thread_lock:
            with self._repo._lock:
                tasks = self._repo._load()
                keep = [t for t in tasks if t.id != task_id]
                if len(keep) == len(tasks):
                    return False
                self._repo._save(keep)
        return True

    def query(self, query: TaskQuery) -> Page:
        """Filter, sort and slice tasks for one page.

        Args:
            query (TaskQuery): Filter, sort and page selection.

        Returns:
            Page: Requested slice with the total number of matches.
        """
        now = datetime.now(timezone.utc)
        matched = [task for task in self.list() if _matches(task, query.filters, now)]
        matched.sort(key=_sort_key(query.sort_by), reverse=query.sort_order == "desc")
        window = matched[query.offset : query.offset + query.limit]
        return Page(items=window, total=len(matched), page=query.page, limit=query.limit)


class FileNotificationRepository(NotificationRepository):
    """YAML-backed notification log; records are never deleted."""
    def __init__(self, path: Path, lock_path: Path) -> None:
        """Initialize the FileNotificationRepository.

        Args:
            path (Path): YAML file path for notification records.
            lock_path (Path): Lock file path used while mutating notification data.
        """
        self._repo = _YamlCollectionRepo[Notification](
            path,
            lock_path,
            "notifications",
            loader=Notification.from_dict,
            dumper=lambda n: n.to_dict(),
        )

    def create(self, notification: Notification) -> Notification:
        with self._repo._thread_lock:
            with self._repo._lock:
                items = self._repo._load()
                items.append(notification)
                self._repo._save(items)
        return notification

    def get(self, notification_id: str) -> Optional[Notification]:
        for item in self._repo.read():
            if item.id == notification_id:
                return item
        return None

    def for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        items = [
            item
            for item in self._repo.read()
            if item.user_id == user_id and not (unread_only and item.is_read)
        ]
        items.sort(key=lambda item: _timestamp(item.created_at), reverse=True)
        return items[:limit]

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        with self._repo._thread_lock:
            with self._repo._lock:
                items = self._repo._load()
                for item in items:
                    if item.id == notification_id:
                        if not item.is_read:
                            item.is_read = True
                            self._repo._save(items)
                        return item
        return None

    def mark_all_read(self, user_id: str) -> int:
        with self._repo._thread_lock:
            with self._repo._lock:
                items = self._repo._load()
                changed = 0
                for item in items:
                    if item.user_id == user_id and not item.is_read:
                        item.is_read = True
                        changed += 1
                if changed:
                    self._repo._save(items)
        return changed

    def unread_count(self, user_id: str) -> int:
        return sum(1 for item in self._repo.read() if item.user_id == user_id and not item.is_read)
