"""Business services layered over the repositories."""

from .auth import AuthResult, AuthService
from .email import EmailSender, HttpEmailSender, LoggingEmailSender
from .notifications import NotificationCoordinator
from .tasks import TaskUpdateResult, TaskWorkflowService
from .users import UserService

__all__ = [
    "AuthResult",
    "AuthService",
    "EmailSender",
    "HttpEmailSender",
    "LoggingEmailSender",
    "NotificationCoordinator",
    "TaskUpdateResult",
    "TaskWorkflowService",
    "UserService",
]
