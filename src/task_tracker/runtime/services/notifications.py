"""Notification coordinator: persisted in-app records plus targeted alerts."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..domain.models import Notification
from ..errors import ForbiddenError, NotFoundError
from ..events.bus import EventBus
from ..storage.interfaces import NotificationRepository, TaskRepository, UserRepository
from .email import EmailSender
from .views import notification_payload

logger = logging.getLogger(__name__)

NOTIFICATION_LIST_LIMIT = 50


class NotificationCoordinator:
    """Create, list and acknowledge notifications for a recipient."""
    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        tasks: TaskRepository,
        bus: EventBus,
        email: Optional[EmailSender] = None,
    ) -> None:
        """Initialize the NotificationCoordinator.

        Args:
            notifications (NotificationRepository): Store for notification records.
            users (UserRepository): Directory used to address assignment mail.
            tasks (TaskRepository): Store used to resolve task titles in listings.
            bus (EventBus): Emitter for targeted realtime alerts.
            email (Optional[EmailSender]): Optional mail channel for assignments.
        """
        self._notifications = notifications
        self._users = users
        self._tasks = tasks
        self._bus = bus
        self._email = email

    def notify_task_assignment(
        self,
        *,
        recipient_id: str,
        task_id: str,
        task_title: str,
        message: str,
        assigner_name: Optional[str] = None,
    ) -> Notification:
        """Record a ``task_assigned`` notification and alert the recipient's sessions.

        The record is written first; the live alert and the assignment mail are
        best-effort and never raise.

        Args:
            recipient_id (str): User receiving the assignment.
            task_id (str): Task that was assigned.
            task_title (str): Title shown in the alert.
            message (str): Human-readable notification text.
            assigner_name (Optional[str]): Display name used in assignment mail.

        Returns:
            Notification: The persisted notification.
        """
        record = self._notifications.create(
            Notification(user_id=recipient_id, kind="task_assigned", message=message, task_id=task_id)
        )
        self._bus.notify_user(recipient_id, {"taskId": task_id, "taskTitle": task_title, "message": message})
        if self._email is not None:
            self._send_assignment_mail(recipient_id, task_title, assigner_name or "Someone")
        return record

    def _send_assignment_mail(self, recipient_id: str, task_title: str, assigner_name: str) -> None:
        recipient = self._users.get(recipient_id)
        if recipient is None or self._email is None:
            return
        try:
            self._email.send_task_assignment(recipient.email, recipient.name, task_title, assigner_name)
        except Exception:
            logger.exception("Failed to send assignment email to user %s", recipient_id)

    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> list[dict[str, Any]]:
        items = self._notifications.for_user(user_id, unread_only=unread_only, limit=NOTIFICATION_LIST_LIMIT)
        return [notification_payload(item, self._tasks) for item in items]

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one notification read on behalf of its recipient.

        Raises:
            NotFoundError: If the notification does not exist.
            ForbiddenError: If ``user_id`` is not the recipient.
        """
        existing = self._notifications.get(notification_id)
        if existing is None:
            raise NotFoundError("Notification not found")
        if existing.user_id != user_id:
            raise ForbiddenError("You are not authorized to modify this notification")
        updated = self._notifications.mark_read(notification_id)
        if updated is None:
            raise NotFoundError("Notification not found")
        return updated

    def mark_all_read(self, user_id: str) -> int:
        return self._notifications.mark_all_read(user_id)

    def unread_count(self, user_id: str) -> int:
        return self._notifications.unread_count(user_id)
