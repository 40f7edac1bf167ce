"""Email utility: sends transactional emails via SMTP (TLS)."""

from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from loguru import logger

from orderform.core.config import Settings


class MailDeliveryError(Exception):
    """The SMTP server or the network refused a message."""


def build_message(
    *,
    sender: str,
    sender_name: str,
    to: str,
    subject: str,
    html_body: str,
    plain_body: str,
    reply_to: str | None = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((sender_name, sender))
    msg["To"] = to
    if reply_to:
        msg["Reply-To"] = reply_to
    msg["Message-ID"] = make_msgid()
    msg.set_content(plain_body)
    msg.add_alternative(html_body, subtype="html")
    return msg


class SmtpMailer:
    """Blocking SMTP sender; one authenticated connection per message."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        *,
        use_ssl: bool = True,
        timeout: float = 15,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.SMTP_USER,
            settings.SMTP_PASSWORD,
            use_ssl=settings.SMTP_USE_SSL,
            timeout=settings.SMTP_TIMEOUT,
        )

    def _open(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
            )
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def send(self, message: EmailMessage) -> None:
        try:
            # Closed on exit, including after a failed handshake or login.
            with self._open() as conn:
                if not self.use_ssl:
                    conn.ehlo()
                    conn.starttls(context=ssl.create_default_context())
                    conn.ehlo()
                if self.username:
                    conn.login(self.username, self.password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.bind(
                to=message["To"], subject=message["Subject"], error=str(exc)
            ).error("smtp_send_failed")
            raise MailDeliveryError(str(exc)) from exc
        logger.bind(to=message["To"], subject=message["Subject"]).info("smtp_sent")
