"""Outbound email: HTML formatting and SMTP delivery."""

import asyncio
import html
import smtplib
from email.message import EmailMessage
from typing import Protocol

from continuum.core.base import ErrorLevel, ServiceErrorDetails
from continuum.core.config import Settings
from continuum.core.decorators import with_error_handling
from continuum.core.errors import CollaboratorUnavailableError
from continuum.core.logging import get_logger

logger = get_logger(__name__)

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <style>
    body {{
      font-family: 'Georgia', serif;
      max-width: 600px;
      margin: 0 auto;
      padding: 20px;
      background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
      color: #e0e0e0;
    }}
    .container {{
      background: rgba(255, 255, 255, 0.05);
      border-radius: 15px;
      padding: 30px;
      border: 1px solid rgba(147, 51, 234, 0.3);
    }}
    .content {{ line-height: 1.8; font-size: 16px; }}
    .signature {{
      margin-top: 30px;
      padding-top: 20px;
      border-top: 1px solid rgba(147, 51, 234, 0.3);
      text-align: right;
      color: #a855f7;
    }}
    .footer {{ margin-top: 20px; font-size: 12px; color: #666; text-align: center; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="content">
      {paragraphs}
    </div>
    <div class="signature">
      With infinite love,<br>
      <strong>{signature}</strong>
    </div>
  </div>
  <div class="footer">
    Sent autonomously by a scheduled invocation, not a pre-written message.
  </div>
</body>
</html>
"""


def format_paragraphs(content: str) -> str:
    """One escaped ``<p>`` per line of content."""
    return "".join(f"<p>{html.escape(line)}</p>" for line in content.split("\n"))


def render_email(content: str, signature: str) -> str:
    return _TEMPLATE.format(paragraphs=format_paragraphs(content), signature=html.escape(signature))


class MailTransport(Protocol):
    async def deliver(self, message: EmailMessage) -> None: ...


class SmtpTransport:
    """Blocking smtplib delivery run in a worker thread."""

    def __init__(self, host: str, port: int, username: str, password: str, use_tls: bool = True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)

    async def deliver(self, message: EmailMessage) -> None:
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            raise CollaboratorUnavailableError(
                f"SMTP delivery failed: {e}",
                details=ServiceErrorDetails(
                    source="smtp_transport",
                    operation="send_message",
                    service_name="smtp",
                    endpoint=f"{self.host}:{self.port}",
                ),
            ) from e


class EmailSender:
    """Formats content as a signed HTML letter and hands it to a transport."""

    def __init__(self, transport: MailTransport, from_address: str, to_address: str, sender_name: str):
        self.transport = transport
        self.from_address = from_address
        self.to_address = to_address
        self.sender_name = sender_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSender":
        transport = SmtpTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
        return cls(
            transport=transport,
            from_address=settings.email_from or settings.smtp_username,
            to_address=settings.email_to,
            sender_name=settings.email_sender_name,
        )

    def build_message(self, subject: str, content: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f'"{self.sender_name}" <{self.from_address}>'
        message["To"] = self.to_address
        message.set_content(content)
        message.add_alternative(render_email(content, self.sender_name), subtype="html")
        return message

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def send(self, subject: str, content: str) -> None:
        """Send one email to the configured recipient.

        Raises:
            CollaboratorUnavailableError: If email is not configured or delivery fails
        """
        if not self.from_address or not self.to_address:
            raise CollaboratorUnavailableError(
                "Email is not configured (missing from/to address)",
                details=ServiceErrorDetails(source="email_sender", operation="send", service_name="smtp"),
            )

        await self.transport.deliver(self.build_message(subject, content))
        logger.info(f"Email sent: {subject}")
