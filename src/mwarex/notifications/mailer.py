"""Invite email notifications over SMTP."""

from __future__ import annotations

import asyncio
import html
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Optional

from mwarex.config import effective_email_provider, settings
from mwarex.config.provider_modes import ProviderMode
from mwarex.observability.logging import get_logger

logger = get_logger("notifications.email")

__all__ = ["EmailNotifier", "NotificationResult", "SentEmail", "get_email_notifier"]

INVITE_SUBJECT = "You've been invited to join a MwareX Workspace"


@dataclass
class NotificationResult:
    """Result of sending a notification."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class SentEmail:
    to: str
    subject: str
    text: str
    html: str


@dataclass
class EmailNotifier:
    """Send transactional email.

    In ``fake`` mode messages are appended to ``outbox`` instead of being
    delivered; ``off`` drops them.
    """

    mode: ProviderMode = "real"
    sender: str = ""
    password: str = ""
    host: str = "smtp.gmail.com"
    port: int = 465
    timeout: float = 15.0
    outbox: list[SentEmail] = field(default_factory=list)

    def build_invite(
        self, to_email: str, invite_link: str, creator_name: str | None
    ) -> EmailMessage:
        inviter = creator_name or "A creator"
        link = html.escape(invite_link, quote=True)
        msg = EmailMessage()
        msg["Subject"] = INVITE_SUBJECT
        msg["From"] = f"MwareX <{self.sender}>"
        msg["To"] = to_email
        msg.set_content(
            f"Hello,\n\n{inviter} has invited you to collaborate on their video content "
            f"as an editor.\n\nAccept the invitation here:\n{invite_link}\n"
        )
        msg.add_alternative(
            "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
            "<h2>Welcome to MwareX</h2>"
            "<p>Hello,</p>"
            f"<p><strong>{html.escape(inviter)}</strong> has invited you to collaborate on "
            "their video content as an editor.</p>"
            f"<p><a href=\"{link}\">Join Workspace</a></p>"
            "<p>If the button doesn't work, copy and paste this link into your browser:<br>"
            f"<a href=\"{link}\">{link}</a></p>"
            "</div>",
            subtype="html",
        )
        return msg

    async def send_invite(
        self, to_email: str, invite_link: str, creator_name: str | None = None
    ) -> NotificationResult:
        msg = self.build_invite(to_email, invite_link, creator_name)
        return await self.send(msg)

    async def send(self, msg: EmailMessage) -> NotificationResult:
        to = str(msg["To"])
        if self.mode == "off":
            logger.info("email_disabled", to=to)
            return NotificationResult(success=False, error="Email provider is off")

        if self.mode == "fake":
            text_part = msg.get_body(preferencelist=("plain",))
            html_part = msg.get_body(preferencelist=("html",))
            self.outbox.append(
                SentEmail(
                    to=to,
                    subject=str(msg["Subject"]),
                    text=text_part.get_content() if text_part else "",
                    html=html_part.get_content() if html_part else "",
                )
            )
            logger.info("email_recorded", to=to, subject=str(msg["Subject"]))
            return NotificationResult(success=True, message_id=f"fake-{len(self.outbox)}")

        if not self.sender or not self.password:
            logger.error("SMTP credentials not configured")
            return NotificationResult(success=False, error="No SMTP credentials")

        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("email_send_failed", to=to, error=str(exc))
            return NotificationResult(success=False, error=str(exc))

        logger.info("email_sent", to=to)
        return NotificationResult(success=True, message_id=msg.get("Message-ID"))

    def _deliver(self, msg: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as smtp:
            smtp.login(self.sender, self.password)
            smtp.send_message(msg)


_notifier: EmailNotifier | None = None


def get_email_notifier() -> EmailNotifier:
    """Process-wide notifier built from settings; rebuilt when the mode changes."""
    global _notifier
    mode = effective_email_provider(settings)
    if _notifier is None or _notifier.mode != mode:
        _notifier = EmailNotifier(
            mode=mode,
            sender=settings.email_user,
            password=settings.email_pass,
            host=settings.smtp_host,
            port=settings.smtp_port,
            timeout=settings.smtp_timeout_seconds,
        )
    return _notifier
