"""Websocket hub: session registry, user groups and event delivery."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from fastapi import WebSocket, WebSocketDisconnect

from .channel import RealtimeChannel, user_group

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Optional[Any]]


@dataclass
class _WsClient:
    ws: WebSocket
    user_id: Optional[str] = None
    groups: set[str] = field(default_factory=set)


class WebSocketHub(RealtimeChannel):
    """Track websocket sessions and route broadcast and group-scoped events.

    The registry lives for the lifetime of the application: sessions are added
    on connect, join their user group once they authenticate, and are removed
    together with their group memberships on disconnect.
    """
    def __init__(self, verify_token: TokenVerifier) -> None:
        self._verify_token = verify_token
        self._clients: dict[str, _WsClient] = {}
        self._groups: dict[str, set[str]] = {}
        self._counter = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the event loop used for cross-thread publish scheduling."""
        with self._lock:
            self._loop = loop

    @property
    def session_count(self) -> int:
        return len(self._clients)

    def group_members(self, group: str) -> set[str]:
        with self._lock:
            return set(self._groups.get(group, set()))

    def join(self, session_id: str, group: str) -> None:
        with self._lock:
            client = self._clients.get(session_id)
            if client is None:
                return
            client.groups.add(group)
            self._groups.setdefault(group, set()).add(session_id)

    def leave(self, session_id: str, group: str) -> None:
        with self._lock:
            client = self._clients.get(session_id)
            if client is not None:
                client.groups.discard(group)
            members = self._groups.get(group)
            if members is None:
                return
            members.discard(session_id)
            if not members:
                self._groups.pop(group, None)

    def _drop(self, session_id: str) -> None:
        with self._lock:
            client = self._clients.pop(session_id, None)
            if client is None:
                return
            for group in client.groups:
                members = self._groups.get(group)
                if members is None:
                    continue
                members.discard(session_id)
                if not members:
                    self._groups.pop(group, None)

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Serve one client connection and process authenticate/ping traffic."""
        self.attach_loop(asyncio.get_running_loop())
        await websocket.accept()
        session_id = uuid.uuid4().hex
        client = _WsClient(ws=websocket)
        with self._lock:
            self._clients[session_id] = client
        logger.info("Realtime session %s connected", session_id)
        try:
            await self._send(websocket, "connected", {"sessionId": session_id})
            cookie_token = websocket.cookies.get("token")
            if cookie_token:
                await self._authenticate(session_id, client, cookie_token)
            while True:
                raw = await websocket.receive_text()
                try:
                    message = json.loads(raw)
                except ValueError:
                    continue
                if not isinstance(message, dict):
                    continue
                action = message.get("action")
                if action == "authenticate":
                    await self._authenticate(session_id, client, message.get("token"))
                elif action == "ping":
                    await self._send(websocket, "pong", {})
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.debug("WebSocket client loop terminated with exception", exc_info=True)
        finally:
            self._drop(session_id)
            logger.info("Realtime session %s disconnected", session_id)

    async def _authenticate(self, session_id: str, client: _WsClient, token: Any) -> None:
        payload = self._verify_token(str(token)) if isinstance(token, str) and token else None
        # A session belongs to at most one user group at a time.
        if client.user_id is not None and (payload is None or payload.user_id != client.user_id):
            self.leave(session_id, user_group(client.user_id))
            client.user_id = None
        if payload is None:
            await self._send(client.ws, "authentication_error", {"message": "Invalid token"})
            return
        client.user_id = payload.user_id
        self.join(session_id, user_group(payload.user_id))
        logger.info("User %s joined their room from session %s", payload.user_id, session_id)
        await self._send(client.ws, "authenticated", {"userId": payload.user_id})

    def _frame(self, event: str, payload: Any) -> str:
        with self._lock:
            self._counter += 1
            seq = self._counter
        return json.dumps({"event": event, "payload": payload, "seq": seq})

    async def _send(self, websocket: WebSocket, event: str, payload: Any) -> None:
        await websocket.send_text(self._frame(event, payload))

    async def publish(self, event: str, payload: Any, session_ids: Iterable[str]) -> None:
        """Send one event to the given sessions, pruning those that fail."""
        frame = self._frame(event, payload)
        stale: list[str] = []
        for session_id in list(session_ids):
            client = self._clients.get(session_id)
            if client is None:
                continue
            try:
                await client.ws.send_text(frame)
            except Exception:
                stale.append(session_id)
        for session_id in stale:
            self._drop(session_id)

    def emit_to_all(self, event: str, payload: Any) -> None:
        with self._lock:
            targets = list(self._clients)
        self._schedule(self.publish(event, payload, targets))

    def emit_to_group(self, group: str, event: str, payload: Any) -> None:
        with self._lock:
            targets = list(self._groups.get(group, set()))
        if not targets:
            return
        self._schedule(self.publish(event, payload, targets))

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        """Schedule async publish from sync code paths without blocking callers."""
        with self._lock:
            loop = self._loop
        if loop and loop.is_running():
            asyncio.run_coroutine_threadsafe(coro, loop)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No running event loop available for publish", exc_info=True)
            return
        self.attach_loop(loop)
        loop.create_task(coro)
