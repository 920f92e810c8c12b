"""Domain models for task tracker runtime state."""

from .inputs import UNSET, NewTask, Page, TaskFilters, TaskPatch, TaskQuery
from .models import Notification, Task, User

__all__ = [
    "Task",
    "User",
    "Notification",
    "NewTask",
    "TaskPatch",
    "TaskFilters",
    "TaskQuery",
    "Page",
    "UNSET",
]
