"""Response envelope shared by runtime API routes."""

from __future__ import annotations

from typing import Any, Optional

from ..domain.inputs import Page


def _ok(data: Any = None, *, message: Optional[str] = None, page: Optional[Page] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if page is not None:
        body["data"] = page.items
        body["pagination"] = page.pagination()
    return body


def _error(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "message": message, **extra}
