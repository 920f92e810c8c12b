"""File helpers shared by the YAML-backed repositories."""

from __future__ import annotations

import fcntl
import os
from pathlib import Path
from typing import IO, Any, Optional

import yaml


class FileLock:
    """Advisory exclusive lock on a sidecar lock file."""

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self.handle: Optional[IO[str]] = None

    def __enter__(self) -> "FileLock":
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self.handle = open(self.lock_path, "w")
        fcntl.flock(self.handle, fcntl.LOCK_EX)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.handle:
            return
        fcntl.flock(self.handle, fcntl.LOCK_UN)
        self.handle.close()
        self.handle = None


def load_yaml(path: Path) -> Any:
    if not path.exists():
        return None
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def atomic_write_yaml(path: Path, data: Any) -> None:
    """Write YAML through a temp file so readers never observe a partial document."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)
