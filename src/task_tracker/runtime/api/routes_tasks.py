"""Task route registration for the runtime API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..domain.inputs import TaskQuery
from ..domain.models import User
from .deps import RouteDeps, current_user_dependency, task_query_params
from .helpers import _ok
from .schemas import CreateTaskRequest, UpdateTaskRequest


def register_task_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register task CRUD, listing and dashboard routes."""
    current_user = current_user_dependency(deps)
    list_params = task_query_params()
    overdue_params = task_query_params(default_sort_by="dueDate", default_sort_order="asc")

    @router.get("/tasks")
    async def list_tasks(
        query: TaskQuery = Depends(list_params),
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        return _ok(page=deps.tasks.list_tasks(query))

    @router.post("/tasks", status_code=201)
    async def create_task(body: CreateTaskRequest, user: User = Depends(current_user)) -> dict[str, Any]:
        """Create a task owned by the caller.

        Args:
            body: Validated task fields; ``assignedToId`` must name a verified user.
            user: Authenticated caller, recorded as the creator.

        Returns:
            A payload containing the created task.
        """
        task = deps.tasks.create_task(body.to_input(), user.id)
        return _ok(task, message="Task created successfully")

    @router.get("/tasks/dashboard/assigned")
    async def assigned_tasks(
        query: TaskQuery = Depends(list_params),
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        return _ok(page=deps.tasks.assigned_to(user.id, query))

    @router.get("/tasks/dashboard/created")
    async def created_tasks(
        query: TaskQuery = Depends(list_params),
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        return _ok(page=deps.tasks.created_by(user.id, query))

    @router.get("/tasks/dashboard/overdue")
    async def overdue_tasks(
        query: TaskQuery = Depends(overdue_params),
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        """List overdue tasks the caller created or is assigned to, soonest due first."""
        return _ok(page=deps.tasks.overdue_for(user.id, query))

    @router.get("/tasks/{task_id}")
    async def get_task(task_id: str, user: User = Depends(current_user)) -> dict[str, Any]:
        return _ok(deps.tasks.get_task(task_id))

    @router.patch("/tasks/{task_id}")
    async def update_task(
        task_id: str,
        body: UpdateTaskRequest,
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        """Apply a partial update; only the creator may call this.

        Args:
            task_id: Identifier of the task to change.
            body: Fields to change. ``assignedToId: null`` clears the assignee.
            user: Authenticated caller.

        Returns:
            A payload containing the updated task.
        """
        result = deps.tasks.update_task(task_id, body.to_input(), user.id)
        return _ok(result.task, message="Task updated successfully")

    @router.delete("/tasks/{task_id}")
    async def delete_task(task_id: str, user: User = Depends(current_user)) -> dict[str, Any]:
        deps.tasks.delete_task(task_id, user.id)
        return _ok(message="Task deleted successfully")
