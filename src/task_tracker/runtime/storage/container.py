"""Dependency container for runtime repositories."""

from __future__ import annotations

from pathlib import Path

from .bootstrap import ensure_state_root
from .file_repos import FileNotificationRepository, FileTaskRepository, FileUserRepository


class Container:
    """Wire file-backed repositories under one state directory."""
    def __init__(self, data_dir: Path) -> None:
        """Initialize the Container.

        Args:
            data_dir (Path): Directory holding the YAML collection files.
        """
        self.data_dir = data_dir.resolve()
        self.state_root = ensure_state_root(self.data_dir)

        self.users = FileUserRepository(self.state_root / "users.yaml", self.state_root / "users.lock")
        self.tasks = FileTaskRepository(self.state_root / "tasks.yaml", self.state_root / "tasks.lock")
        self.notifications = FileNotificationRepository(
            self.state_root / "notifications.yaml",
            self.state_root / "notifications.lock",
        )
