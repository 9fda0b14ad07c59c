"""Delivery types and verification message rendering."""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from ..domain.enums import Channel, Purpose


class DeliveryStatus(Enum):
    """Delivery status outcomes."""

    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryReceipt:
    """Immutable record of a delivery attempt.

    ``recipient`` is always the masked destination; gateways never put the
    raw address in a receipt.
    """

    recipient: str
    channel: Channel
    status: DeliveryStatus
    provider_id: str | None = None
    sent_at: datetime | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.sent_at is None:
            object.__setattr__(self, "sent_at", datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.SENT

    @classmethod
    def sent(
        cls,
        recipient: str,
        channel: Channel,
        provider_id: str | None = None,
    ) -> DeliveryReceipt:
        """Create a successful delivery receipt."""
        return cls(
            recipient=recipient,
            channel=channel,
            status=DeliveryStatus.SENT,
            provider_id=provider_id,
        )

    @classmethod
    def failed(
        cls,
        recipient: str,
        channel: Channel,
        error: str | None = None,
    ) -> DeliveryReceipt:
        """Create a failed delivery receipt."""
        return cls(
            recipient=recipient,
            channel=channel,
            status=DeliveryStatus.FAILED,
            error=error,
        )


@dataclass(frozen=True)
class RenderedMessage:
    """Message ready for delivery."""

    body_text: str
    subject: str | None = None
    body_html: str | None = None

    def __repr__(self) -> str:
        # body carries the code
        return f"RenderedMessage(subject={self.subject!r}, body_text='<redacted>')"


_PURPOSE_TEXT: dict[Purpose, str] = {
    Purpose.REGISTRATION: "complete your registration",
    Purpose.LOGIN: "log in to your account",
    Purpose.PASSWORD_RESET: "reset your password",
    Purpose.CONTACT_CHANGE: "verify your new contact details",
}

DEFAULT_SUBJECT = "Your verification code"

_BODY_TEMPLATE = (
    "Your verification code is: {code}\n\n"
    "Use this code to {action}.\n\n"
    "This code expires in {minutes} minutes.\n\n"
    "If you didn't request this, please ignore this message."
)


def render_message(
    code: str,
    purpose: Purpose,
    *,
    ttl_minutes: int = 10,
    channel: Channel = Channel.SMS,
    subject: str = DEFAULT_SUBJECT,
) -> RenderedMessage:
    """Render the verification message for ``code`` and ``purpose``.

    A pure function: the output depends only on its arguments and holds no
    account data beyond the code itself. E-mail gets a subject line and an
    HTML alternative; SMS and WhatsApp get plain text only.
    """
    body = _BODY_TEMPLATE.format(
        code=code,
        action=_PURPOSE_TEXT.get(purpose, "verify your identity"),
        minutes=ttl_minutes,
    )
    if channel is not Channel.EMAIL:
        return RenderedMessage(body_text=body)

    paragraphs = "".join(
        f"<p>{html.escape(part)}</p>" for part in body.split("\n\n") if part
    )
    return RenderedMessage(
        body_text=body,
        subject=subject,
        body_html=f'<div style="font-family: Arial, sans-serif;">{paragraphs}</div>',
    )


__all__: list[str] = [
    "DeliveryStatus",
    "DeliveryReceipt",
    "RenderedMessage",
    "render_message",
    "DEFAULT_SUBJECT",
]
