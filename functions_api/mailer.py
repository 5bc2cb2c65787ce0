"""SMTP delivery for OTP codes, account credentials and order mails."""

from dataclasses import dataclass
from email.message import EmailMessage
import logging
import os
import smtplib
from typing import Optional

LOGGER = logging.getLogger(__name__)


class MailerNotConfigured(RuntimeError):
    pass


@dataclass
class SmtpSettings:
    host: str = "smtp.gmail.com"
    port: int = 587
    username: str = ""
    password: str = ""
    sender_email: str = ""
    sender_name: str = "Kash It"

    @classmethod
    def from_env(cls) -> "SmtpSettings":
        username = os.getenv("SMTP_USER", "")
        return cls(
            host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASS", ""),
            sender_email=os.getenv("SMTP_SENDER_EMAIL", "") or username,
            sender_name=os.getenv("SMTP_SENDER_NAME", "Kash It"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password and self.sender_email)


class Mailer:
    def __init__(self, settings: SmtpSettings, *, timeout_s: float = 20.0) -> None:
        self.settings = settings
        self.timeout_s = timeout_s

    @property
    def configured(self) -> bool:
        return self.settings.configured

    def build(self, to: str, subject: str, text: str, html: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{self.settings.sender_name} <{self.settings.sender_email}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        if not self.configured:
            raise MailerNotConfigured("SMTP not configured")
        msg = self.build(to, subject, text, html)
        cfg = self.settings
        with smtplib.SMTP(cfg.host, cfg.port, timeout=self.timeout_s) as smtp:
            smtp.starttls()
            smtp.login(cfg.username, cfg.password)
            smtp.send_message(msg)
        LOGGER.info("Mail sent to %s: %s", to, subject)

    def send_quietly(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        """Background variant: failures are logged, never raised."""
        try:
            self.send(to, subject, text, html)
        except (MailerNotConfigured, smtplib.SMTPException, OSError) as exc:
            LOGGER.error("Failed to send mail to %s: %s", to, exc)
            return False
        return True
