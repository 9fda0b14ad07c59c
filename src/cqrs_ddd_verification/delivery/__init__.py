"""Delivery of verification messages over SMS, WhatsApp and e-mail.

Provider gateways (Twilio, SMTP) import their client library lazily, so the
matching extra only needs installing when the gateway is used.
"""

from .console import ConsoleGateway
from .memory import InMemoryGateway, SentMessage
from .messages import (
    DEFAULT_SUBJECT,
    DeliveryReceipt,
    DeliveryStatus,
    RenderedMessage,
    render_message,
)
from .router import ChannelRouter
from .smtp import SmtpEmailGateway
from .twilio import TwilioSmsGateway, TwilioWhatsAppGateway

__all__: list[str] = [
    "ChannelRouter",
    "ConsoleGateway",
    "DEFAULT_SUBJECT",
    "DeliveryReceipt",
    "DeliveryStatus",
    "InMemoryGateway",
    "RenderedMessage",
    "SentMessage",
    "SmtpEmailGateway",
    "TwilioSmsGateway",
    "TwilioWhatsAppGateway",
    "render_message",
]
