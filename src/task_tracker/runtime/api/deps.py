"""Shared dependency context for runtime API route registration."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

from fastapi import Query, Request

from ..domain.inputs import TaskFilters, TaskQuery
from ..domain.models import PRIORITIES, STATUSES, User
from ..errors import UnauthorizedError, ValidationFailure
from ..security import TokenIssuer
from ..services import AuthService, NotificationCoordinator, TaskWorkflowService, UserService
from ..storage.container import Container
from .rate_limit import RateLimiter

TOKEN_COOKIE = "token"


@dataclass(frozen=True)
class RouteDeps:
    """Route registration dependency bundle."""

    container: Container
    tasks: TaskWorkflowService
    notifications: NotificationCoordinator
    auth: AuthService
    users: UserService
    tokens: TokenIssuer
    rate_limiter: RateLimiter
    rate_limits_enabled: bool = True
    trust_proxy: bool = False
    secure_cookies: bool = False


def request_token(request: Request) -> Optional[str]:
    """Read the bearer credential from an Authorization header, else the ``token`` cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(TOKEN_COOKIE) or None


def current_user_dependency(deps: RouteDeps) -> Callable[[Request], Awaitable[User]]:
    """Build the dependency resolving the authenticated user; anything else is a 401."""
    async def _current_user(request: Request) -> User:
        token = request_token(request)
        if not token:
            raise UnauthorizedError("Not authorized, no token")
        payload = deps.tokens.verify(token)
        if payload is None:
            raise UnauthorizedError("Not authorized, invalid token")
        user = deps.container.users.get(payload.user_id)
        if user is None:
            raise UnauthorizedError("Not authorized, user not found")
        return user

    return _current_user


def task_query_params(default_sort_by: str = "createdAt", default_sort_order: str = "desc") -> Callable[..., TaskQuery]:
    """Build a query-string parser producing a validated ``TaskQuery``."""
    def _params(
        page: int = Query(1),
        limit: int = Query(10),
        sort_by: str = Query(default_sort_by, alias="sortBy"),
        sort_order: str = Query(default_sort_order, alias="sortOrder"),
        status: Optional[str] = Query(None),
        priority: Optional[str] = Query(None),
    ) -> TaskQuery:
        if status is not None and status not in STATUSES:
            raise ValidationFailure(f"status must be one of: {', '.join(STATUSES)}")
        if priority is not None and priority not in PRIORITIES:
            raise ValidationFailure(f"priority must be one of: {', '.join(PRIORITIES)}")
        try:
            return TaskQuery(
                filters=TaskFilters(status=status, priority=priority),  # type: ignore[arg-type]
                sort_by=sort_by,  # type: ignore[arg-type]
                sort_order=sort_order,  # type: ignore[arg-type]
                page=page,
                limit=limit,
            )
        except ValueError as exc:
            raise ValidationFailure(str(exc)) from exc

    return _params
