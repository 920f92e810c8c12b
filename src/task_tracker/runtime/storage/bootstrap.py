from __future__ import annotations

from pathlib import Path

from .file_repos import SCHEMA_VERSION


STATE_FILES = {
    "users": "users.yaml",
    "tasks": "tasks.yaml",
    "notifications": "notifications.yaml",
}


def ensure_state_root(data_dir: Path) -> Path:
    """Create the state directory and seed empty collection files."""
    state_root = data_dir
    state_root.mkdir(parents=True, exist_ok=True)

    for file_name in STATE_FILES.values():
        target = state_root / file_name
        if not target.exists():
            target.write_text(f"version: {SCHEMA_VERSION}\n", encoding="utf-8")

    return state_root
