"""Task workflow engine: authorization, assignment rules and side effects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from ..domain.inputs import NewTask, Page, TaskFilters, TaskPatch, TaskQuery
from ..domain.models import DEFAULT_PRIORITY, DEFAULT_STATUS, Task, User
from ..errors import ForbiddenError, InvalidAssignmentError, NotFoundError
from ..events.bus import EventBus
from ..storage.interfaces import TaskRepository, UserRepository
from .notifications import NotificationCoordinator
from .views import TaskPresenter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskUpdateResult:
    task: dict[str, Any]
    previous_assignee_id: Optional[str]
    assignee_changed: bool


def assignee_changed(patch: TaskPatch, previous_assignee_id: Optional[str]) -> bool:
    """True only when the patch carries an assignee that differs from the previous one."""
    return patch.includes_assignee and patch.assignee_id != previous_assignee_id


def should_notify(changed: bool, new_assignee_id: Optional[str], acting_user_id: str) -> bool:
    return changed and bool(new_assignee_id) and new_assignee_id != acting_user_id


class TaskWorkflowService:
    """Create, update, delete and list tasks on behalf of an authenticated user.

    Only a task's creator may mutate or delete it; assignees have read access.
    Every mutation is broadcast through the event bus, and assignment changes
    fan out to the notification coordinator.
    """
    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        notifier: NotificationCoordinator,
        bus: EventBus,
    ) -> None:
        """Initialize the TaskWorkflowService.

        Args:
            tasks (TaskRepository): Task store.
            users (UserRepository): Directory used to validate assignees.
            notifier (NotificationCoordinator): Sink for assignment notifications.
            bus (EventBus): Emitter for task mutation events.
        """
        self._tasks = tasks
        self._users = users
        self._notifier = notifier
        self._bus = bus
        self._presenter = TaskPresenter(users)

    def _resolve_assignee(self, assignee_id: str) -> User:
        assignee = self._users.get(assignee_id)
        if assignee is None:
            raise NotFoundError("Assigned user not found")
        if not assignee.is_verified:
            raise InvalidAssignmentError("Cannot assign task to unverified user")
        return assignee

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _display_name(self, user_id: str) -> str:
        user = self._users.get(user_id)
        return user.name if user and user.name else "Someone"

    def create_task(self, data: NewTask, creator_id: str) -> dict[str, Any]:
        """Persist a new task owned by ``creator_id``.

        Args:
            data (NewTask): Validated creation fields.
            creator_id (str): Authenticated user creating the task.

        Returns:
            dict[str, Any]: Created task with creator/assignee display data.

        Raises:
            NotFoundError: If the requested assignee does not exist.
            InvalidAssignmentError: If the requested assignee is not verified.
        """
        if data.assignee_id:
            self._resolve_assignee(data.assignee_id)

        task = self._tasks.create(
            Task(
                title=data.title,
                description=data.description,
                due_date=data.due_date,
                priority=data.priority or DEFAULT_PRIORITY,
                status=data.status or DEFAULT_STATUS,
                creator_id=creator_id,
                assignee_id=data.assignee_id or None,
            )
        )
        logger.info("Task %s created by user %s", task.id, creator_id)
        payload = self._presenter.present(task)
        self._bus.task_created(payload)

        if task.assignee_id and task.assignee_id != creator_id:
            self._notifier.notify_task_assignment(
                recipient_id=task.assignee_id,
                task_id=task.id,
                task_title=task.title,
                message=f"You have been assigned a new task: {task.title}",
                assigner_name=self._display_name(creator_id),
            )
        return payload

    def get_task(self, task_id: str) -> dict[str, Any]:
        return self._presenter.present(self._require_task(task_id))

    def update_task(self, task_id: str, patch: TaskPatch, user_id: str) -> TaskUpdateResult:
        """Apply a partial update requested by the task's creator.

        Args:
            task_id (str): Identifier for the target task.
            patch (TaskPatch): Validated fields to change; an explicit ``None``
                assignee clears the assignment.
            user_id (str): Authenticated user requesting the change.

        Returns:
            TaskUpdateResult: Updated task plus the assignment delta.

        Raises:
            NotFoundError: If the task or the requested assignee does not exist.
            ForbiddenError: If ``user_id`` is not the task creator.
            InvalidAssignmentError: If the requested assignee is not verified.
        """
        task = self._require_task(task_id)
        if task.creator_id != user_id:
            raise ForbiddenError("You are not authorized to update this task")
        if patch.includes_assignee and patch.assignee_id is not None:
            self._resolve_assignee(patch.assignee_id)

        previous_assignee_id = task.assignee_id
        changed = assignee_changed(patch, previous_assignee_id)

        updated = self._tasks.update(task_id, patch.changes())
        if updated is None:
            raise NotFoundError("Task not found")
        payload = self._presenter.present(updated)
        self._bus.task_updated(payload)

        if should_notify(changed, updated.assignee_id, user_id):
            assigner_name = self._display_name(user_id)
            self._notifier.notify_task_assignment(
                recipient_id=str(updated.assignee_id),
                task_id=updated.id,
                task_title=updated.title,
                message=f"{assigner_name} assigned you a task: {updated.title}",
                assigner_name=assigner_name,
            )
        return TaskUpdateResult(task=payload, previous_assignee_id=previous_assignee_id, assignee_changed=changed)

    def delete_task(self, task_id: str, user_id: str) -> dict[str, Any]:
        """Permanently remove a task owned by ``user_id``.

        Raises:
            NotFoundError: If the task does not exist.
            ForbiddenError: If ``user_id`` is not the task creator.
        """
        task = self._require_task(task_id)
        if task.creator_id != user_id:
            raise ForbiddenError("You are not authorized to delete this task")
        payload = self._presenter.present(task)
        if not self._tasks.delete(task_id):
            raise NotFoundError("Task not found")
        logger.info("Task %s deleted by user %s", task_id, user_id)
        self._bus.task_deleted(payload)
        return payload

    def _page(self, query: TaskQuery) -> Page:
        page = self._tasks.query(query)
        return replace(page, items=self._presenter.present_many(page.items))

    def list_tasks(self, query: TaskQuery) -> Page:
        return self._page(query)

    def assigned_to(self, user_id: str, query: TaskQuery) -> Page:
        return self._page(replace(query, filters=TaskFilters(assignee_id=user_id)))

    def created_by(self, user_id: str, query: TaskQuery) -> Page:
        return self._page(replace(query, filters=TaskFilters(creator_id=user_id)))

    def overdue_for(self, user_id: str, query: TaskQuery) -> Page:
        """Overdue tasks the user either created or is assigned to."""
        return self._page(replace(query, filters=TaskFilters(involving_user_id=user_id, overdue=True)))
