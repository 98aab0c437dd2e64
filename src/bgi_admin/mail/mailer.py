"""Outbound mail.

A ``Mailer`` is built once from ``MAIL_CONFIG`` and injected through the container;
handlers never reach for a module-level transport.
"""
from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Protocol

from ..core.exceptions import MailError

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, recipient: str, subject: str, text_body: str, html_body: Optional[str] = None) -> str:
        """Hand one message to the transport and return its Message-ID; raise MailError on failure."""
        raise NotImplementedError


def _build_message(*, sender: str, recipient: str, subject: str, text_body: str, html_body: Optional[str]) -> EmailMessage:
    if not recipient:
        raise MailError("Recipient (to) email is required")
    if not subject:
        raise MailError("Email subject is required")

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid()
    msg.set_content(text_body or "")
    msg.add_alternative(html_body or f"<p>{text_body or 'No content'}</p>", subtype="html")
    return msg


class SmtpMailer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str,
        password: str,
        secure: bool,
        from_name: str,
        timeout: float = 30.0,
    ):
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._secure = secure
        self._sender = formataddr((from_name, user or "no-reply@example.com"))
        self._timeout = timeout

    def _open(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self._secure:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout, context=context)
        smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        smtp.starttls(context=context)
        return smtp

    def send(self, recipient: str, subject: str, text_body: str, html_body: Optional[str] = None) -> str:
        msg = _build_message(
            sender=self._sender, recipient=recipient, subject=subject, text_body=text_body, html_body=html_body
        )
        logger.info("Sending email to %s (subject: %s)", recipient, subject)
        try:
            with self._open() as smtp:
                if self._user:
                    smtp.login(self._user, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(str(e) or e.__class__.__name__) from e
        logger.info("Email sent (messageId): %s", msg["Message-ID"])
        return str(msg["Message-ID"])


class LogMailer:
    """Writes messages to the log instead of sending them (development and tests)."""

    def __init__(self, *, from_name: str = "BGI Ujjain"):
        self._sender = formataddr((from_name, "no-reply@example.com"))
        self.sent: list[EmailMessage] = []

    def send(self, recipient: str, subject: str, text_body: str, html_body: Optional[str] = None) -> str:
        msg = _build_message(
            sender=self._sender, recipient=recipient, subject=subject, text_body=text_body, html_body=html_body
        )
        self.sent.append(msg)
        logger.info("Email (not sent, log provider) to %s: %s", recipient, subject)
        return str(msg["Message-ID"])


def build_mailer(config: dict) -> Mailer:
    provider = str(config.get("provider") or "log").lower()
    if provider == "smtp":
        port = int(config.get("port") or 465)
        return SmtpMailer(
            host=str(config.get("host") or "smtp.gmail.com"),
            port=port,
            user=str(config.get("user") or ""),
            password=str(config.get("password") or ""),
            secure=bool(config.get("secure")) or port == 465,
            from_name=str(config.get("from_name") or "BGI Ujjain"),
            timeout=float(config.get("timeout") or 30.0),
        )
    if provider == "log":
        return LogMailer(from_name=str(config.get("from_name") or "BGI Ujjain"))
    raise ValueError(f"Unknown MAIL_PROVIDER: {provider}")
