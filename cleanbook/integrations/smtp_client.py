"""SMTP integration for outbound email."""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from cleanbook.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class EmailDeliveryError(Exception):
    """The message could not be handed to the SMTP server."""


# Connection problems and 4xx replies are worth another attempt
_TRANSIENT_ERRORS = (
    smtplib.SMTPConnectError,
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPDataError,
    ConnectionError,
    TimeoutError,
)


class SMTPMailer:
    """Sends HTML email through the configured SMTP server.

    With no SMTP_HOST configured the mailer runs in dev mode and only logs
    the message.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    @property
    def sender(self) -> str:
        address = self.settings.SMTP_FROM or self.settings.SMTP_USER
        return formataddr((self.settings.APP_NAME, address))

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")
        return msg

    async def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one message; raises EmailDeliveryError when it cannot."""
        if not self.enabled:
            # Dev mode - just log
            logger.info("email_dev_mode", to=to, subject=subject)
            return

        msg = self.build_message(to, subject, html)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.settings.SMTP_MAX_ATTEMPTS)),
            wait=wait_exponential(multiplier=self.settings.SMTP_RETRY_WAIT_SECONDS, max=10),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    # smtplib is synchronous, run in executor
                    loop = asyncio.get_running_loop()
                    await loop.run_in_executor(None, self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"SMTP error: {e}") from e

        logger.info("email_sent", to=to, subject=subject)

    def _deliver(self, msg: EmailMessage) -> None:
        s = self.settings
        if s.SMTP_SECURE:
            smtp = smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
        else:
            smtp = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
        with smtp:
            if not s.SMTP_SECURE:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if s.SMTP_USER and s.SMTP_PASS:
                smtp.login(s.SMTP_USER, s.SMTP_PASS)
            smtp.send_message(msg)
