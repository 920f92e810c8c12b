from __future__ import annotations

from typing import Any, Optional

from ..errors import NotFoundError
from ..storage.interfaces import UserRepository


class UserService:
    """Profile reads/updates and the assignable-user directory."""

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    def get_profile(self, user_id: str) -> dict[str, Any]:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.public_dict()

    def update_profile(self, user_id: str, *, name: Optional[str] = None) -> dict[str, Any]:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if name is not None:
            user.name = name.strip()
        return self._users.upsert(user).public_dict()

    def list_assignable(self) -> list[dict[str, str]]:
        """Verified users, the only valid assignment targets."""
        return [
            {"id": user.id, "email": user.email, "name": user.name}
            for user in sorted(self._users.list_verified(), key=lambda u: u.name.lower())
        ]
