"""Per-client request throttling for the authentication routes."""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Request, Response

from ..errors import RateLimitedError

logger = logging.getLogger(__name__)

HOUR = 60 * 60


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window_seconds: int
    message: str


POLICIES: dict[str, RateLimitPolicy] = {
    "register": RateLimitPolicy("register", 5, HOUR, "Too many registration attempts. Please try again later."),
    "verify-otp": RateLimitPolicy("verify-otp", 10, HOUR, "Too many OTP verification attempts. Please try again later."),
    "resend-otp": RateLimitPolicy("resend-otp", 3, HOUR, "Too many OTP resend requests. Please try again later."),
    "login": RateLimitPolicy("login", 10, HOUR, "Too many login attempts. Please try again later."),
    "forgot-password": RateLimitPolicy("forgot-password", 5, HOUR, "Too many password reset requests. Please try again later."),
    "reset-password": RateLimitPolicy("reset-password", 5, HOUR, "Too many password reset attempts. Please try again later."),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0


class RateLimiter(ABC):
    """Counter backend deciding whether one more request fits the window."""
    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        raise NotImplementedError


class _Window:
    __slots__ = ("seconds", "hits")

    def __init__(self, seconds: int) -> None:
        self.seconds = seconds
        self.hits: deque[float] = deque()

    def prune(self, now: float) -> deque[float]:
        while self.hits and self.hits[0] <= now - self.seconds:
            self.hits.popleft()
        return self.hits


class SlidingWindowRateLimiter(RateLimiter):
    """In-process sliding window log keyed by policy and client.

    Keys whose window has fully elapsed are swept at most once per
    ``sweep_interval`` seconds, so idle clients do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._hits: dict[str, _Window] = {}
        self._next_sweep = 0.0
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            window = self._hits.get(key)
            if window is None:
                window = self._hits[key] = _Window(window_seconds)
            window.seconds = window_seconds
            hits = window.prune(now)
            allowed = len(hits) < limit
            if allowed:
                hits.append(now)
            if not hits:
                self._hits.pop(key, None)
            reset_at = (hits[0] if hits else now) + window_seconds
            return RateLimitResult(
                allowed=allowed,
                limit=limit,
                remaining=max(0, limit - len(hits)),
                reset_at=reset_at,
                retry_after=0 if allowed else max(1, int(math.ceil(reset_at - now))),
            )

    def _sweep(self, now: float) -> None:
        for key in [k for k, window in self._hits.items() if not window.prune(now)]:
            del self._hits[key]
        self._next_sweep = now + self._sweep_interval


def client_key(request: Request, *, trust_proxy: bool = False) -> str:
    """Resolve the address a request is throttled under.

    Behind a trusted reverse proxy the last ``X-Forwarded-For`` hop is the
    address the proxy itself saw; earlier hops are client-supplied.
    """
    if trust_proxy:
        hops = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",") if hop.strip()]
        if hops:
            return hops[-1]
    return request.client.host if request.client else "unknown"


def rate_limit(
    limiter: RateLimiter,
    policy_name: str,
    *,
    enabled: bool = True,
    trust_proxy: bool = False,
) -> Callable[..., Any]:
    """Build a route dependency enforcing ``POLICIES[policy_name]``.

    The limiter failing never blocks a request: the error is logged and the
    request proceeds without rate-limit headers.
    """
    policy = POLICIES[policy_name]

    async def _dependency(request: Request, response: Response) -> None:
        if not enabled:
            return
        key = f"ratelimit:{policy.name}:{client_key(request, trust_proxy=trust_proxy)}"
        try:
            result = limiter.hit(key, policy.limit, policy.window_seconds)
        except Exception:
            logger.exception("Rate limiter failed for %s; allowing request", key)
            return
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(int(math.ceil(result.reset_at)))
        if not result.allowed:
            raise RateLimitedError(policy.message, retry_after=max(1, result.retry_after))

    return _dependency
