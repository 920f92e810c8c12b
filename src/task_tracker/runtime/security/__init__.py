"""Credential helpers: password hashing, bearer tokens and one-time codes."""

from .otp import InMemoryOtpStore, OtpStore, generate_otp
from .passwords import hash_password, verify_password
from .tokens import TokenIssuer, TokenPayload, parse_duration

__all__ = [
    "InMemoryOtpStore",
    "OtpStore",
    "TokenIssuer",
    "TokenPayload",
    "generate_otp",
    "hash_password",
    "parse_duration",
    "verify_password",
]
