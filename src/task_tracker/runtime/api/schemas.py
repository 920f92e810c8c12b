"""Pydantic request schemas for runtime API routes."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.inputs import UNSET, NewTask, TaskPatch
from ..domain.models import TITLE_MAX_LENGTH, TaskPriority, TaskStatus, parse_iso

USER_ID_PATTERN = r"^user-[0-9a-f]{10}$"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _due_date(value: str) -> str:
    parsed = parse_iso(value)
    if parsed is None:
        raise ValueError("Invalid date format")
    return parsed.isoformat()


def _email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


def _password(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CreateTaskRequest(_CamelModel):
    """Payload for creating a new task."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=1)
    due_date: str = Field(alias="dueDate")
    priority: TaskPriority = "Medium"
    status: TaskStatus = "To Do"
    assignee_id: Optional[str] = Field(default=None, alias="assignedToId", pattern=USER_ID_PATTERN)

    check_due = field_validator("due_date")(_due_date)

    def to_input(self) -> NewTask:
        return NewTask(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            priority=self.priority,
            status=self.status,
            assignee_id=self.assignee_id,
        )


class UpdateTaskRequest(_CamelModel):
    """Patch payload; ``assignedToId: null`` clears the assignee."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, min_length=1)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[str] = Field(default=None, alias="assignedToId", pattern=USER_ID_PATTERN)

    @field_validator("title", "description", "due_date", "priority", "status", mode="before")
    @classmethod
    def reject_null(cls, value: object) -> object:
        # Only the assignee may be cleared with an explicit null.
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("due_date")
    @classmethod
    def check_optional_due(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _due_date(value)

    def to_input(self) -> TaskPatch:
        supplied = self.model_fields_set
        values = {
            name: getattr(self, name) if name in supplied else UNSET
            for name in ("title", "description", "due_date", "priority", "status", "assignee_id")
        }
        return TaskPatch(**values)


class RegisterRequest(_CamelModel):
    email: str
    password: str
    name: str = Field(min_length=2, max_length=100)

    check_email = field_validator("email")(_email)
    check_password = field_validator("password")(_password)


class LoginRequest(_CamelModel):
    email: str
    password: str = Field(min_length=1)

    check_email = field_validator("email")(_email)


class EmailRequest(_CamelModel):
    email: str

    check_email = field_validator("email")(_email)


class VerifyOtpRequest(_CamelModel):
    email: str
    otp: str = Field(min_length=6, max_length=6, pattern=r"^\d+$")

    check_email = field_validator("email")(_email)


class ResetPasswordRequest(_CamelModel):
    email: str
    otp: str = Field(min_length=6, max_length=6, pattern=r"^\d+$")
    new_password: str = Field(alias="newPassword")

    check_email = field_validator("email")(_email)
    check_password = field_validator("new_password")(_password)


class UpdateProfileRequest(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
