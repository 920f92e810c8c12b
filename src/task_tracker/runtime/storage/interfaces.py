"""Repository interfaces for runtime persistence abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..domain.inputs import Page, TaskQuery
from ..domain.models import Notification, Task, User


class UserRepository(ABC):
    """Persistence contract for registered user accounts."""
    @abstractmethod
    def list(self) -> List[User]:
        """List every persisted user record.

        Returns:
            List[User]: All user records currently stored.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        """Fetch a user by id, or ``None`` when no record exists.

        Args:
            user_id (str): Identifier for the target user.

        Returns:
            Optional[User]: Requested value when available; otherwise `None`.
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Fetch a user by email, compared case-insensitively.

        Args:
            email (str): Email address to look up.

        Returns:
            Optional[User]: Requested value when available; otherwise `None`.
        """
        raise NotImplementedError

    @abstractmethod
    def upsert(self, user: User) -> User:
        """Create or update a user record.

        Args:
            user (User): User model to persist.

        Returns:
            User: Persisted user record after the write operation.

        Raises:
            ConflictError: If another user already owns the same email.
        """
        raise NotImplementedError

    def list_verified(self) -> List[User]:
        """List users allowed to receive task assignments."""
        return [user for user in self.list() if user.is_verified]


class TaskRepository(ABC):
    """Persistence contract for task records."""
    @abstractmethod
    def get(self, task_id: str) -> Optional[Task]:
        """Fetch a task by id, or ``None`` when no record exists.

        Args:
            task_id (str): Identifier for the target task.

        Returns:
            Optional[Task]: Requested value when available; otherwise `None`.
        """
        raise NotImplementedError

    @abstractmethod
    def create(self, task: Task) -> Task:
        """Insert a new task record.

        Args:
            task (Task): Task model to persist.

        Returns:
            Task: Persisted task with timestamps set.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, task_id: str, changes: dict[str, Any]) -> Optional[Task]:
        """Apply a partial update to one task atomically.

        Args:
            task_id (str): Identifier for the target task.
            changes (dict[str, Any]): Task attribute names mapped to new values.

        Returns:
            Optional[Task]: Updated task, or `None` when the task does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        """Delete a task by id and return whether anything was removed.

        Args:
            task_id (str): Identifier for the target task.

        Returns:
            bool: `True` when the operation succeeds, otherwise `False`.
        """
        raise NotImplementedError

    @abstractmethod
    def query(self, query: TaskQuery) -> Page:
        """Filter, sort and paginate tasks.

        Args:
            query (TaskQuery): Filter, sort and page selection.

        Returns:
            Page: Matching tasks for the requested page plus the total match count.
        """
        raise NotImplementedError


class NotificationRepository(ABC):
    """Persistence contract for in-app notifications."""
    @abstractmethod
    def create(self, notification: Notification) -> Notification:
        """Append a notification record.

        Args:
            notification (Notification): Notification to persist.

        Returns:
            Notification: Persisted notification record.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, notification_id: str) -> Optional[Notification]:
        """Fetch a notification by id, or ``None`` when no record exists."""
        raise NotImplementedError

    @abstractmethod
    def for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        """List a user's notifications newest-first.

        Args:
            user_id (str): Recipient identifier.
            unread_only (bool): Restrict to notifications not yet read.
            limit (int): Maximum number of records returned.

        Returns:
            List[Notification]: Most recent notifications for the recipient.
        """
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, notification_id: str) -> Optional[Notification]:
        """Set the read flag on one notification.

        Returns:
            Optional[Notification]: Updated record, or `None` when it does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def mark_all_read(self, user_id: str) -> int:
        """Set the read flag on all of a user's unread notifications.

        Returns:
            int: Number of records that changed.
        """
        raise NotImplementedError

    @abstractmethod
    def unread_count(self, user_id: str) -> int:
        """Count a user's unread notifications."""
        raise NotImplementedError
