"""SMTP e-mail gateway."""

from __future__ import annotations

import email.message
import email.policy
import logging

from ..domain.enums import Channel
from ..exceptions import DeliveryConfigurationError
from ..masking import mask_email
from ..ports import IDeliveryGateway
from .messages import DEFAULT_SUBJECT, DeliveryReceipt, RenderedMessage

logger = logging.getLogger(__name__)


class SmtpEmailGateway(IDeliveryGateway):
    """
    Async SMTP email gateway using aiosmtplib.
    """

    def __init__(
        self,
        host: str,
        from_email: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        if not from_email:
            raise DeliveryConfigurationError(
                Channel.EMAIL.value, "sender email (from_email) is required"
            )
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_email = from_email

    def build_message(
        self, destination: str, message: RenderedMessage
    ) -> email.message.EmailMessage:
        """Build the MIME message, with an HTML alternative when available."""
        mime = email.message.EmailMessage(policy=email.policy.default)
        mime["To"] = destination
        mime["From"] = self.from_email
        mime["Subject"] = message.subject or DEFAULT_SUBJECT

        if message.body_html:
            mime.set_content(message.body_text, subtype="plain", charset="utf-8")
            mime.add_alternative(message.body_html, subtype="html", charset="utf-8")
        else:
            mime.set_content(message.body_text, charset="utf-8")
        return mime

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        if channel is not Channel.EMAIL:
            raise DeliveryConfigurationError(
                channel.value, "SmtpEmailGateway only sends email"
            )

        # Lazy import of aiosmtplib
        try:
            import aiosmtplib
        except ImportError as e:
            raise ImportError(
                "aiosmtplib is required for SmtpEmailGateway. "
                "Install with: pip install 'cqrs-ddd-verification[smtp]'"
            ) from e

        recipient = mask_email(destination)
        try:
            mime = self.build_message(destination, message)
            async with aiosmtplib.SMTP(
                hostname=self.host,
                port=self.port,
                timeout=self.timeout,
                start_tls=False,
            ) as smtp:
                if self.use_tls:
                    await smtp.starttls()
                if self.username and self.password:
                    await smtp.login(self.username, self.password)

                await smtp.send_message(mime)

        except Exception as e:  # noqa: BLE001
            logger.error("Failed to send email to %s: %s", recipient, e)
            return DeliveryReceipt.failed(recipient, channel, error=str(e))

        logger.info("Email sent to %s via SMTP", recipient)
        return DeliveryReceipt.sent(recipient, channel, provider_id="smtp")


__all__: list[str] = ["SmtpEmailGateway"]
