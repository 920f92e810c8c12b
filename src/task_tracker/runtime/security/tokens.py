"""Stateless bearer credentials signed with HMAC-SHA256."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

_HEADER = {"alg": "HS256", "typ": "JWT"}
_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """Convert ``7d`` / ``12h`` / ``30m`` / ``45s`` / ``3600`` into seconds."""
    match = _DURATION_RE.match(str(value or ""))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    pad = "=" * ((4 - (len(value) % 4)) % 4)
    return base64.urlsafe_b64decode((value + pad).encode("ascii"))


@dataclass(frozen=True)
class TokenPayload:
    user_id: str
    email: str
    issued_at: int
    expires_at: int


class TokenIssuer:
    """Issue and verify compact ``header.payload.signature`` tokens."""

    def __init__(self, secret: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._key = secret.encode("utf-8")
        self.ttl_seconds = ttl_seconds

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self._key, signing_input.encode("ascii"), hashlib.sha256).digest()
        return _b64encode(digest)

    def issue(self, user_id: str, email: str, *, now: Optional[float] = None) -> str:
        issued_at = int(now if now is not None else time.time())
        claims = {
            "userId": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        header = _b64encode(json.dumps(_HEADER, separators=(",", ":")).encode("utf-8"))
        body = _b64encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header}.{body}"
        return f"{signing_input}.{self._sign(signing_input)}"

    def verify(self, token: str, *, now: Optional[float] = None) -> Optional[TokenPayload]:
        """Return the payload of a valid, unexpired token, otherwise ``None``."""
        parts = str(token or "").split(".")
        if len(parts) != 3:
            return None
        header, body, signature = parts
        try:
            if not hmac.compare_digest(self._sign(f"{header}.{body}").encode("ascii"), signature.encode("ascii")):
                return None
            claims: Any = json.loads(_b64decode(body))
        except ValueError:
            return None
        if not isinstance(claims, dict):
            return None
        user_id = claims.get("userId")
        exp = claims.get("exp")
        if not isinstance(user_id, str) or not user_id or not isinstance(exp, int):
            return None
        current = now if now is not None else time.time()
        if current >= exp:
            return None
        return TokenPayload(
            user_id=user_id,
            email=str(claims.get("email") or ""),
            issued_at=int(claims.get("iat") or 0),
            expires_at=exp,
        )
