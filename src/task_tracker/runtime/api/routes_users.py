"""User directory and profile routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..domain.models import User
from .deps import RouteDeps, current_user_dependency
from .helpers import _ok
from .schemas import UpdateProfileRequest


def register_user_routes(router: APIRouter, deps: RouteDeps) -> None:
    current_user = current_user_dependency(deps)

    @router.get("/users")
    async def list_users(user: User = Depends(current_user)) -> dict[str, Any]:
        """List verified users; these are the valid assignment targets."""
        return _ok(deps.users.list_assignable())

    @router.get("/users/profile")
    async def get_profile(user: User = Depends(current_user)) -> dict[str, Any]:
        return _ok(deps.users.get_profile(user.id))

    @router.patch("/users/profile")
    async def update_profile(body: UpdateProfileRequest, user: User = Depends(current_user)) -> dict[str, Any]:
        profile = deps.users.update_profile(user.id, name=body.name)
        return _ok(profile, message="Profile updated successfully")
