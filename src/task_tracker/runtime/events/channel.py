"""Publish/subscribe contract the workflow engine emits through."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


def user_group(user_id: str) -> str:
    """Name of the private group holding every session of one user."""
    return f"user:{user_id}"


class RealtimeChannel(ABC):
    """Fan-out transport for task and notification events."""
    @abstractmethod
    def join(self, session_id: str, group: str) -> None:
        """Add a connected session to a named group."""
        raise NotImplementedError

    @abstractmethod
    def emit_to_all(self, event: str, payload: Any) -> None:
        """Deliver an event to every connected session, authenticated or not."""
        raise NotImplementedError

    @abstractmethod
    def emit_to_group(self, group: str, event: str, payload: Any) -> None:
        """Deliver an event only to sessions that joined ``group``."""
        raise NotImplementedError


class TaskEventScope:
    """Choose which audience receives a task mutation event.

    Returning ``None`` broadcasts to every connected session. A deployment with
    teams or projects can return a group key here instead.
    """

    def group_for(self, task: dict[str, Any]) -> Optional[str]:
        return None
