# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Notification sender – delivers verification codes by email.

Two backends:

* ``SMTPMailer``    – talks to the relay in SMTP_HOST / SMTP_PORT.  This is
  the one call in the service with an explicit timeout (SMTP_TIMEOUT covers
  connect, greeting and every command).
* ``ConsoleMailer`` – logs the message instead of sending it; for local
  development without a relay.

Every failure surfaces as :class:`core.exceptions.DeliveryError` so callers
handle a single type.
"""

import smtplib
from email.message import EmailMessage

from fastapi import Request

from core.config import Settings
from core.exceptions import DeliveryError
from core.logger import logger


class Mailer:
    """Interface: deliver one plain-text message or raise DeliveryError."""

    def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError

    def send_verification_code(self, to: str, name: str, code: str) -> None:
        subject = "Your DeepTech Summit verification code"
        body = (
            f"Hello {name},\n\n"
            f"Your verification code is: {code}\n\n"
            "Enter it on the verification page to activate your account.\n"
            "If you did not register, you can ignore this email.\n"
        )
        self.send(to, subject, body)


class SMTPMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as conn:
                if self.use_tls:
                    conn.starttls()
                if self.username:
                    conn.login(self.username, self.password)
                conn.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery to %s via %s:%d failed: %s", to, self.host, self.port, exc)
            raise DeliveryError() from exc

        logger.info("Mail '%s' sent to %s", subject, to)


class ConsoleMailer(Mailer):
    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("[console mail] To: %s | Subject: %s\n%s", to, subject, body)


def build_mailer(settings: Settings) -> Mailer:
    if settings.mail_backend == "console":
        return ConsoleMailer()
    if settings.mail_backend == "smtp":
        return SMTPMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_sender,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout,
        )
    raise RuntimeError(f"Unknown MAIL_BACKEND '{settings.mail_backend}'")


def get_mailer(request: Request) -> Mailer:
    """FastAPI dependency returning the application's mailer."""
    return request.app.state.mailer
