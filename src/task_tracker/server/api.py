"""FastAPI app wiring for the task tracker runtime."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Settings
from ..runtime.api import RateLimiter, RouteDeps, SlidingWindowRateLimiter, create_router, install_error_handlers
from ..runtime.events import EventBus, TaskEventScope, WebSocketHub
from ..runtime.security import InMemoryOtpStore, OtpStore, TokenIssuer
from ..runtime.services import (
    AuthService,
    EmailSender,
    HttpEmailSender,
    LoggingEmailSender,
    NotificationCoordinator,
    TaskWorkflowService,
    UserService,
)
from ..runtime.services.email import DEFAULT_EMAIL_API_URL
from ..runtime.storage import Container


def _default_email_sender(settings: Settings) -> EmailSender:
    if not settings.email_api_key:
        return LoggingEmailSender()
    return HttpEmailSender(
        api_key=settings.email_api_key,
        from_email=settings.email_from,
        from_name=settings.email_from_name,
        api_url=settings.email_api_url or DEFAULT_EMAIL_API_URL,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    email_sender: Optional[EmailSender] = None,
    rate_limiter: Optional[RateLimiter] = None,
    otp_store: Optional[OtpStore] = None,
    event_scope: Optional[TaskEventScope] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings (Optional[Settings]): Runtime settings; read from the environment
            when omitted.
        email_sender (Optional[EmailSender]): Outbound mail channel. Defaults to the
            HTTP provider when an API key is configured, otherwise to logging.
        rate_limiter (Optional[RateLimiter]): Counter backend for the auth routes.
        otp_store (Optional[OtpStore]): Storage for one-time codes.
        event_scope (Optional[TaskEventScope]): Audience selector for task events;
            the default broadcasts to every connected session.
        enable_cors (bool): Whether to install CORS middleware for the configured
            browser origins.

    Returns:
        FastAPI: Configured application with the API router, websocket hub, and
        the container, hub and services stored on ``app.state``.
    """
    settings = settings or Settings.from_env()
    container = Container(settings.data_dir)
    tokens = TokenIssuer(settings.token_secret, settings.token_ttl_seconds)
    hub = WebSocketHub(tokens.verify)
    bus = EventBus(hub, event_scope)
    email = email_sender or _default_email_sender(settings)

    notifications = NotificationCoordinator(container.notifications, container.users, container.tasks, bus, email)
    deps = RouteDeps(
        container=container,
        tasks=TaskWorkflowService(container.tasks, container.users, notifications, bus),
        notifications=notifications,
        auth=AuthService(
            container.users,
            tokens,
            otp_store or InMemoryOtpStore(ttl_seconds=settings.otp_ttl_seconds),
            email,
        ),
        users=UserService(container.users),
        tokens=tokens,
        rate_limiter=rate_limiter or SlidingWindowRateLimiter(),
        rate_limits_enabled=settings.rate_limits_enabled,
        trust_proxy=settings.trust_proxy,
        secure_cookies=settings.env == "production",
    )

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        hub.attach_loop(asyncio.get_running_loop())
        try:
            yield
        finally:
            if isinstance(email, HttpEmailSender) and email_sender is None:
                email.close()

    app = FastAPI(
        title="Task Tracker",
        description="Collaborative task tracking with real-time updates",
        version=__version__,
        lifespan=_lifespan,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.settings = settings
    app.state.container = container
    app.state.hub = hub
    app.state.deps = deps

    install_error_handlers(app, debug=settings.is_development)
    app.include_router(create_router(deps))

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Expose liveness status for process-level health checks."""
        return {"success": True, "message": "Server is running", "version": __version__, "sessions": hub.session_count}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        """Bridge websocket clients to the realtime hub."""
        await hub.handle_connection(websocket)

    return app
