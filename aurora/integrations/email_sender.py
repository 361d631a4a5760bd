"""Outbound email for tag notifications.

Sending is best effort: the API schedules `notify_tagged_recipient` after the
response is sent, and any failure there is logged and dropped.
"""

import os
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Tuple
from dotenv import load_dotenv

from aurora.errors import ConfigurationError
from aurora.models.experience import Experience

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "AURORA INTEL"
DEFAULT_FRONTEND_URL = "http://localhost:5173"


class EmailSender:
    """SMTP sender (STARTTLS, login auth)."""

    def __init__(
        self,
        user: str,
        password: str,
        host: str = "smtp.gmail.com",
        port: int = 587,
        app_name: str = DEFAULT_APP_NAME,
        timeout: int = 30,
    ):
        """Initialize the sender.

        Raises:
            ConfigurationError: If SMTP credentials are missing
        """
        if not (user and password):
            raise ConfigurationError("Email credentials (EMAIL_USER, EMAIL_PASS) not configured")
        self.user = user
        self.password = password
        self.host = host
        self.port = port
        self.app_name = app_name
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "EmailSender":
        return cls(
            user=os.getenv("EMAIL_USER", ""),
            password=os.getenv("EMAIL_PASS", ""),
            host=os.getenv("EMAIL_HOST", "smtp.gmail.com"),
            port=int(os.getenv("EMAIL_PORT", "587")),
            app_name=os.getenv("APP_NAME", DEFAULT_APP_NAME),
        )

    def send(self, to: str, subject: str, text: str) -> None:
        """Send a plain-text email.

        Raises:
            smtplib.SMTPException / OSError: On transport failure
        """
        message = EmailMessage()
        message["From"] = f'"{self.app_name}" <{self.user}>'
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)

        logger.debug(f"Sending email to {to}: {subject}")
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(message)
        logger.info(f"Email sent to {to}")


def build_tag_notification(
    experience: Experience,
    app_name: str = DEFAULT_APP_NAME,
    frontend_url: str = DEFAULT_FRONTEND_URL,
) -> Tuple[str, str]:
    """Build (subject, body) for the email sent to a tagged recipient."""
    subject = f"{experience.user_name} shared an experience with you on {app_name}!"
    lines = [
        "Hi there,",
        "",
        f"{experience.user_name} ({experience.user_email}) shared an experience on {app_name} and mentioned you:",
        "",
        f'"{experience.experience}"',
        "",
    ]
    if experience.message_to_recipient:
        lines += ["They added this message for you:", f'"{experience.message_to_recipient}"', ""]
    lines += [
        f"You can view all experiences here: {frontend_url.rstrip('/')}/blog",
        "",
        "Thanks,",
        f"The {app_name} Team",
    ]
    return subject, "\n".join(lines)


def notify_tagged_recipient(sender: Optional[EmailSender], experience: Experience) -> None:
    """Email the tagged recipient of an experience; never raises."""
    if not experience.tagged_email:
        return
    if sender is None:
        logger.error(
            f"Email service not configured; tag notification for experience {experience.id} dropped"
        )
        return
    subject, body = build_tag_notification(
        experience,
        app_name=sender.app_name,
        frontend_url=os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL),
    )
    try:
        sender.send(experience.tagged_email, subject, body)
    except Exception as e:
        logger.error(
            f"Failed to send tag notification to {experience.tagged_email} "
            f"for experience {experience.id}: {type(e).__name__}: {str(e)}"
        )
