"""Wire representations of tasks and notifications."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..domain.models import Notification, Task, User
from ..storage.interfaces import TaskRepository, UserRepository


def _user_ref(user_id: Optional[str], users: dict[str, User]) -> Optional[dict[str, Any]]:
    if not user_id:
        return None
    user = users.get(user_id)
    if user is None:
        return {"id": user_id, "name": None, "email": None}
    return user.summary()


def task_payload(task: Task, users: dict[str, User]) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "dueDate": task.due_date,
        "priority": task.priority,
        "status": task.status,
        "creator": _user_ref(task.creator_id, users),
        "assignee": _user_ref(task.assignee_id, users),
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }


class TaskPresenter:
    """Resolve creator/assignee references to display data (name, email)."""

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    def present(self, task: Task) -> dict[str, Any]:
        lookup: dict[str, User] = {}
        for user_id in (task.creator_id, task.assignee_id):
            if user_id and user_id not in lookup:
                user = self._users.get(user_id)
                if user is not None:
                    lookup[user_id] = user
        return task_payload(task, lookup)

    def present_many(self, tasks: Iterable[Task]) -> list[dict[str, Any]]:
        lookup = {user.id: user for user in self._users.list()}
        return [task_payload(task, lookup) for task in tasks]


def notification_payload(notification: Notification, tasks: Optional[TaskRepository] = None) -> dict[str, Any]:
    task_ref: Optional[dict[str, Any]] = None
    if notification.task_id:
        task = tasks.get(notification.task_id) if tasks is not None else None
        task_ref = {"id": notification.task_id, "title": task.title if task else None}
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.kind,
        "message": notification.message,
        "task": task_ref,
        "isRead": notification.is_read,
        "createdAt": notification.created_at,
    }
