from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import pytest

from task_tracker.config import Settings
from task_tracker.runtime.domain.models import User
from task_tracker.runtime.events import EventBus, RealtimeChannel
from task_tracker.runtime.security import hash_password
from task_tracker.runtime.services import EmailSender, NotificationCoordinator, TaskWorkflowService
from task_tracker.runtime.storage.container import Container

TEST_SECRET = "test-secret-for-signing-tokens-0123456789"
PASSWORD = "Passw0rdOK"


class RecordingChannel(RealtimeChannel):
    """Realtime channel double capturing every emission."""

    def __init__(self) -> None:
        self.broadcasts: list[tuple[str, Any]] = []
        self.targeted: list[tuple[str, str, Any]] = []
        self.joins: list[tuple[str, str]] = []

    def join(self, session_id: str, group: str) -> None:
        self.joins.append((session_id, group))

    def emit_to_all(self, event: str, payload: Any) -> None:
        self.broadcasts.append((event, payload))

    def emit_to_group(self, group: str, event: str, payload: Any) -> None:
        self.targeted.append((group, event, payload))


class RecordingEmailSender(EmailSender):
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = fail

    def send(self, *, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise RuntimeError("mail provider unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})

    def last_code(self, email: str) -> Optional[str]:
        for item in reversed(self.sent):
            if item["to"] == email:
                match = re.search(r"<strong>(\d{6})</strong>", item["html"])
                if match:
                    return match.group(1)
        return None


def make_user(container: Container, name: str, *, verified: bool = True, email: Optional[str] = None) -> User:
    slug = name.lower().replace(" ", ".")
    return container.users.upsert(
        User(
            email=email or f"{slug}@example.com",
            name=name,
            password_hash=hash_password(PASSWORD, iterations=1_000),
            is_verified=verified,
        )
    )


@pytest.fixture
def container(tmp_path: Path) -> Container:
    return Container(tmp_path / "state")


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def mailer() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def notifier(container: Container, channel: RecordingChannel, mailer: RecordingEmailSender) -> NotificationCoordinator:
    return NotificationCoordinator(container.notifications, container.users, container.tasks, EventBus(channel), mailer)


@pytest.fixture
def workflow(container: Container, channel: RecordingChannel, notifier: NotificationCoordinator) -> TaskWorkflowService:
    return TaskWorkflowService(container.tasks, container.users, notifier, EventBus(channel))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(env="test", data_dir=tmp_path / "state", token_secret=TEST_SECRET)
