"""One-time verification codes and their short-lived storage."""

from __future__ import annotations

import secrets
import threading
import time
from abc import ABC, abstractmethod
from typing import Literal, Optional

OtpPurpose = Literal["verify", "reset"]

OTP_LENGTH = 6
DEFAULT_OTP_TTL_SECONDS = 10 * 60


def generate_otp() -> str:
    """Return a 6-digit code drawn from a cryptographically secure source."""
    return str(secrets.randbelow(900_000) + 100_000)


class OtpStore(ABC):
    """Short-lived code storage keyed by purpose and email."""
    @abstractmethod
    def put(self, purpose: OtpPurpose, email: str, code: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, purpose: OtpPurpose, email: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, purpose: OtpPurpose, email: str) -> None:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    """Process-local store; entries vanish after ``ttl_seconds``."""

    def __init__(self, ttl_seconds: int = DEFAULT_OTP_TTL_SECONDS, clock=time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(purpose: OtpPurpose, email: str) -> str:
        return f"otp:{purpose}:{email.strip().lower()}"

    def put(self, purpose: OtpPurpose, email: str, code: str) -> None:
        with self._lock:
            self._items[self._key(purpose, email)] = (code, self._clock() + self._ttl)

    def get(self, purpose: OtpPurpose, email: str) -> Optional[str]:
        key = self._key(purpose, email)
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                return None
            code, expires_at = entry
            if self._clock() >= expires_at:
                self._items.pop(key, None)
                return None
            return code

    def delete(self, purpose: OtpPurpose, email: str) -> None:
        with self._lock:
            self._items.pop(self._key(purpose, email), None)
