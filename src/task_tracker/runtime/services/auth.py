"""Registration, one-time-code verification, login and password reset."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Any

from ..domain.models import User
from ..errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, ValidationFailure
from ..security import OtpStore, TokenIssuer, generate_otp, hash_password, verify_password
from ..storage.interfaces import UserRepository
from .email import EmailSender

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If your email is registered, you will receive a password reset OTP"


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: dict[str, Any]


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def _identity(user: User) -> dict[str, Any]:
    return {"id": user.id, "email": user.email, "name": user.name, "isVerified": user.is_verified}


class AuthService:
    """Account lifecycle: a user is created unverified and flips to verified once."""
    def __init__(self, users: UserRepository, tokens: TokenIssuer, otps: OtpStore, email: EmailSender) -> None:
        self._users = users
        self._tokens = tokens
        self._otps = otps
        self._email = email

    def _send_code(self, send, user: User, code: str) -> None:
        try:
            send(user.email, user.name, code)
        except Exception:
            logger.exception("Failed to send one-time code to %s", user.email)

    def register(self, *, name: str, email: str, password: str) -> dict[str, Any]:
        """Create an unverified account and mail its verification code.

        Raises:
            ConflictError: If the email is already registered.
        """
        email = _normalize_email(email)
        if self._users.get_by_email(email) is not None:
            raise ConflictError("Email already registered")
        user = self._users.upsert(User(email=email, name=name.strip(), password_hash=hash_password(password)))
        code = generate_otp()
        self._otps.put("verify", email, code)
        self._send_code(self._email.send_verification_code, user, code)
        logger.info("Registered user %s", user.id)
        return _identity(user)

    def verify_otp(self, *, email: str, code: str) -> AuthResult:
        """Confirm an account with its one-time code and sign the user in.

        Raises:
            NotFoundError: If no account uses the email.
            ValidationFailure: If the account is already verified or the code is
                missing, expired or wrong.
        """
        email = _normalize_email(email)
        user = self._users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise ValidationFailure("Account already verified")
        stored = self._otps.get("verify", email)
        if not stored:
            raise ValidationFailure("OTP has expired or not found. Please request a new one.")
        if not hmac.compare_digest(str(stored), str(code)):
            raise ValidationFailure("Invalid OTP")
        user.is_verified = True
        self._users.upsert(user)
        self._otps.delete("verify", email)
        logger.info("User %s verified", user.id)
        return AuthResult(token=self._tokens.issue(user.id, user.email), user=_identity(user))

    def resend_otp(self, *, email: str) -> None:
        email = _normalize_email(email)
        user = self._users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise ValidationFailure("Account already verified")
        code = generate_otp()
        self._otps.put("verify", email, code)
        self._send_code(self._email.send_verification_code, user, code)

    def login(self, *, email: str, password: str) -> AuthResult:
        """Exchange credentials for a bearer token.

        Raises:
            UnauthorizedError: If the email is unknown or the password is wrong.
            ForbiddenError: If the account has not been verified yet.
        """
        user = self._users.get_by_email(_normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.is_verified:
            raise ForbiddenError("Please verify your email before logging in")
        return AuthResult(token=self._tokens.issue(user.id, user.email), user=_identity(user))

    def forgot_password(self, *, email: str) -> str:
        """Mail a reset code when the account exists; the reply never says which."""
        email = _normalize_email(email)
        user = self._users.get_by_email(email)
        if user is not None:
            code = generate_otp()
            self._otps.put("reset", email, code)
            self._send_code(self._email.send_password_reset_code, user, code)
        return RESET_REQUESTED_MESSAGE

    def reset_password(self, *, email: str, code: str, new_password: str) -> None:
        email = _normalize_email(email)
        user = self._users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        stored = self._otps.get("reset", email)
        if not stored:
            raise ValidationFailure("OTP has expired or not found. Please request a new one.")
        if not hmac.compare_digest(str(stored), str(code)):
            raise ValidationFailure("Invalid OTP")
        user.password_hash = hash_password(new_password)
        self._users.upsert(user)
        self._otps.delete("reset", email)
        logger.info("Password reset for user %s", user.id)
