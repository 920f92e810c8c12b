"""Event bus and websocket hub exports."""

from .bus import EventBus
from .channel import RealtimeChannel, TaskEventScope, user_group
from .ws import WebSocketHub

__all__ = ["EventBus", "RealtimeChannel", "TaskEventScope", "WebSocketHub", "user_group"]
