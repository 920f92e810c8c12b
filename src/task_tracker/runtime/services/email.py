"""Transactional email senders."""

from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod

import httpx

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_API_URL = "https://api.brevo.com/v3/smtp/email"


class EmailSender(ABC):
    """Outbound mail used by registration, password reset and assignment flows."""
    @abstractmethod
    def send(self, *, to: str, subject: str, html: str) -> None:
        raise NotImplementedError

    def send_verification_code(self, email: str, name: str, code: str) -> None:
        self.send(
            to=email,
            subject="Verify your account",
            html=(
                f"<p>Hello {html.escape(name)},</p>"
                f"<p>Your verification code is <strong>{code}</strong>. It expires in 10 minutes.</p>"
            ),
        )

    def send_password_reset_code(self, email: str, name: str, code: str) -> None:
        self.send(
            to=email,
            subject="Reset your password",
            html=(
                f"<p>Hello {html.escape(name)},</p>"
                f"<p>Your password reset code is <strong>{code}</strong>. It expires in 10 minutes.</p>"
            ),
        )

    def send_task_assignment(self, email: str, name: str, task_title: str, assigner_name: str) -> None:
        self.send(
            to=email,
            subject=f"New task assigned: {task_title}",
            html=(
                f"<p>Hello {html.escape(name)},</p>"
                f"<p>{html.escape(assigner_name)} assigned you a task: <strong>{html.escape(task_title)}</strong>.</p>"
            ),
        )


class LoggingEmailSender(EmailSender):
    """Write outgoing mail to the log instead of delivering it."""

    def send(self, *, to: str, subject: str, html: str) -> None:
        logger.info("Email to %s: %s", to, subject)
        logger.debug("Email body for %s: %s", to, html)


class HttpEmailSender(EmailSender):
    """Deliver mail through a JSON transactional email API."""

    def __init__(
        self,
        *,
        api_key: str,
        from_email: str,
        from_name: str,
        api_url: str = DEFAULT_EMAIL_API_URL,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name
        self._api_url = api_url
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, *, to: str, subject: str, html: str) -> None:
        response = self._client.post(
            self._api_url,
            headers={
                "accept": "application/json",
                "api-key": self._api_key,
                "content-type": "application/json",
            },
            json={
                "sender": {"name": self._from_name, "email": self._from_email},
                "to": [{"email": to}],
                "subject": subject,
                "htmlContent": html,
            },
        )
        if response.is_error:
            logger.error("Email sending failed with status %s: %s", response.status_code, response.text)
            response.raise_for_status()

    def close(self) -> None:
        self._client.close()
