"""Notification route registration for the runtime API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ..domain.models import User
from ..services.views import notification_payload
from .deps import RouteDeps, current_user_dependency
from .helpers import _ok


def register_notification_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register recipient-scoped notification routes."""
    current_user = current_user_dependency(deps)

    @router.get("/notifications")
    async def list_notifications(
        unread_only: bool = Query(False, alias="unreadOnly"),
        user: User = Depends(current_user),
    ) -> dict[str, Any]:
        return _ok(deps.notifications.list_for_user(user.id, unread_only=unread_only))

    @router.get("/notifications/unread-count")
    async def unread_count(user: User = Depends(current_user)) -> dict[str, Any]:
        return _ok({"count": deps.notifications.unread_count(user.id)})

    @router.patch("/notifications/read-all")
    async def mark_all_read(user: User = Depends(current_user)) -> dict[str, Any]:
        count = deps.notifications.mark_all_read(user.id)
        return _ok({"modifiedCount": count}, message="All notifications marked as read")

    @router.patch("/notifications/{notification_id}/read")
    async def mark_read(notification_id: str, user: User = Depends(current_user)) -> dict[str, Any]:
        notification = deps.notifications.mark_read(notification_id, user.id)
        return _ok(notification_payload(notification, deps.container.tasks), message="Notification marked as read")
