"""Persistence layer: repository contracts and YAML-backed implementations."""

from .container import Container
from .interfaces import NotificationRepository, TaskRepository, UserRepository

__all__ = ["Container", "UserRepository", "TaskRepository", "NotificationRepository"]
