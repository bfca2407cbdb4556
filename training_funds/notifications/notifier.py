"""
Notifier Module

Outbound message type and the transports that deliver it.
"""

import logging
import smtplib
import uuid
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Protocol

from ..config import SmtpSettings
from ..exceptions import NotifierUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    """File attached to an outbound message."""

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"


@dataclass
class OutboundMessage:
    """A rendered message ready for delivery."""

    to: list[str]
    subject: str
    text: str
    html: str | None = None
    sender: str | None = None
    reply_to: str | None = None
    attachments: list[Attachment] = field(default_factory=list)


class Notifier(Protocol):
    """Delivers a message to its recipients.

    Returns a transport message id. Raises NotifierUnavailable on failure.
    """

    def send(self, message: OutboundMessage) -> str:
        ...


class SmtpNotifier:
    """Sends messages through an SMTP server."""

    def __init__(self, settings: SmtpSettings, timeout: float = 30.0):
        """Initialize SMTP notifier.

        Args:
            settings: SMTP connection settings
            timeout: Socket timeout in seconds
        """
        self.settings = settings
        self.timeout = timeout

    def build_email(self, message: OutboundMessage) -> EmailMessage:
        """Convert an OutboundMessage into a MIME email."""
        email = EmailMessage()
        email["From"] = message.sender or ""
        email["To"] = ", ".join(message.to)
        email["Subject"] = message.subject
        email["Message-ID"] = f"<{uuid.uuid4()}@training-funds>"
        if message.reply_to:
            email["Reply-To"] = message.reply_to

        email.set_content(message.text)
        if message.html:
            email.add_alternative(message.html, subtype="html")

        for attachment in message.attachments:
            maintype, _, subtype = attachment.mime_type.partition("/")
            email.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )

        return email

    def send(self, message: OutboundMessage) -> str:
        email = self.build_email(message)
        try:
            with smtplib.SMTP(self.settings.host, self.settings.port, timeout=self.timeout) as smtp:
                if self.settings.use_tls:
                    smtp.starttls()
                if self.settings.username:
                    smtp.login(self.settings.username, self.settings.password or "")
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            raise NotifierUnavailable(f"SMTP delivery to {', '.join(message.to)} failed: {e}") from e

        return email["Message-ID"]


class LoggingNotifier:
    """Writes messages to the log instead of sending them.

    Used when no mail server is configured.
    """

    def __init__(self):
        self.sent: list[OutboundMessage] = []

    def send(self, message: OutboundMessage) -> str:
        self.sent.append(message)
        logger.info(f"[mail disabled] To: {', '.join(message.to)} Subject: {message.subject}")
        return f"log-{len(self.sent)}"
