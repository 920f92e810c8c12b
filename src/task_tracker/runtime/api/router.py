"""Runtime API router assembly."""

from __future__ import annotations

from fastapi import APIRouter

from .deps import RouteDeps
from .routes_auth import register_auth_routes
from .routes_notifications import register_notification_routes
from .routes_tasks import register_task_routes
from .routes_users import register_user_routes


def create_router(deps: RouteDeps) -> APIRouter:
    """Create the runtime API router.

    Args:
        deps (RouteDeps): Services, token issuer and rate limiter shared by every
            route module.

    Returns:
        APIRouter: Router mounted under ``/api`` exposing auth, task,
        notification and user endpoints.
    """
    router = APIRouter(prefix="/api", tags=["api"])
    register_auth_routes(router, deps)
    register_task_routes(router, deps)
    register_notification_routes(router, deps)
    register_user_routes(router, deps)
    return router
