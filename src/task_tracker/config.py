"""Settings loaded from ``TASK_TRACKER_*`` environment variables."""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .runtime.security.tokens import parse_duration

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASK_TRACKER"
MIN_SECRET_LENGTH = 32


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    # ---- Server ----
    env: str = "development"
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    # ---- State ----
    data_dir: Path = Path(".task_tracker")

    # ---- Credentials ----
    token_secret: str = ""
    token_ttl: str = "7d"
    otp_ttl_seconds: int = 600
    rate_limits_enabled: bool = True
    trust_proxy: bool = False

    # ---- Email provider ----
    email_api_key: Optional[str] = None
    email_from: str = "no-reply@task-tracker.local"
    email_from_name: str = "Task Tracker"
    email_api_url: Optional[str] = None

    def __post_init__(self) -> None:
        if self.env not in {"development", "production", "test"}:
            raise ValueError(f"env must be development, production or test, got {self.env!r}")
        if not self.token_secret:
            # A fresh secret invalidates every issued token on restart.
            logger.warning("%s is not set; using a random per-process secret", _k("TOKEN_SECRET"))
            object.__setattr__(self, "token_secret", secrets.token_urlsafe(48))
        elif len(self.token_secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"token secret must be at least {MIN_SECRET_LENGTH} characters")
        parse_duration(self.token_ttl)
        if self.otp_ttl_seconds <= 0:
            raise ValueError("otp_ttl_seconds must be positive")

    @property
    def token_ttl_seconds(self) -> int:
        return parse_duration(self.token_ttl)

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            env=_env(_k("ENV"), "development").strip().lower(),
            host=_env(_k("HOST"), "127.0.0.1"),
            port=_env_int(_k("PORT"), 5000),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            cors_origins=tuple(_env_list(_k("CORS_ORIGIN"), ["http://localhost:3000"])),
            data_dir=_env_path(_k("DATA_DIR"), Path(".task_tracker")),
            token_secret=_env(_k("TOKEN_SECRET")),
            token_ttl=_env(_k("TOKEN_TTL"), "7d"),
            otp_ttl_seconds=_env_int(_k("OTP_TTL_SECONDS"), 600),
            rate_limits_enabled=_env_bool(_k("RATE_LIMITS_ENABLED"), True),
            trust_proxy=_env_bool(_k("TRUST_PROXY"), False),
            email_api_key=_env(_k("EMAIL_API_KEY")) or None,
            email_from=_env(_k("EMAIL_FROM"), "no-reply@task-tracker.local"),
            email_from_name=_env(_k("EMAIL_FROM_NAME"), "Task Tracker"),
            email_api_url=_env(_k("EMAIL_API_URL")) or None,
        )
