"""Event bus that fans task and notification events out to connected clients."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .channel import RealtimeChannel, TaskEventScope, user_group

logger = logging.getLogger(__name__)

TASK_CREATED = "task:created"
TASK_UPDATED = "task:updated"
TASK_DELETED = "task:deleted"
NOTIFICATION_ASSIGNED = "notification:assigned"


class EventBus:
    """Best-effort emitter; delivery failures are logged and never raised."""
    def __init__(self, channel: RealtimeChannel, scope: Optional[TaskEventScope] = None) -> None:
        """Initialize the EventBus.

        Args:
            channel (RealtimeChannel): Transport used to reach connected sessions.
            scope (Optional[TaskEventScope]): Audience selector for task events;
                defaults to broadcasting to every session.
        """
        self._channel = channel
        self._scope = scope or TaskEventScope()

    def _emit_task_event(self, event: str, task: dict[str, Any], payload: Any) -> None:
        try:
            group = self._scope.group_for(task)
            if group is None:
                self._channel.emit_to_all(event, payload)
            else:
                self._channel.emit_to_group(group, event, payload)
        except Exception:
            logger.debug("Failed to emit %s for task %s", event, task.get("id"), exc_info=True)

    def task_created(self, task: dict[str, Any]) -> None:
        self._emit_task_event(TASK_CREATED, task, task)

    def task_updated(self, task: dict[str, Any]) -> None:
        self._emit_task_event(TASK_UPDATED, task, task)

    def task_deleted(self, task: dict[str, Any]) -> None:
        """Announce a deletion; only the identifier travels on the wire."""
        self._emit_task_event(TASK_DELETED, task, {"id": task.get("id")})

    def notify_user(self, user_id: str, alert: dict[str, Any]) -> None:
        """Push a targeted alert to every session of one user."""
        try:
            self._channel.emit_to_group(user_group(user_id), NOTIFICATION_ASSIGNED, alert)
        except Exception:
            logger.debug("Failed to deliver %s to user %s", NOTIFICATION_ASSIGNED, user_id, exc_info=True)
