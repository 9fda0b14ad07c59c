"""Console gateway for development debugging."""

from __future__ import annotations

import logging

from ..domain.enums import Channel
from ..masking import mask_destination
from ..ports import IDeliveryGateway
from .messages import DeliveryReceipt, RenderedMessage

logger = logging.getLogger(__name__)


class ConsoleGateway(IDeliveryGateway):
    """
    Development adapter that prints verification messages to the console.

    The message body, code included, only goes to stdout. The destination
    is masked both there and in the log line.
    """

    def __init__(self, output_to_stdout: bool = True):
        self.output_to_stdout = output_to_stdout

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        recipient = mask_destination(channel, destination)
        logger.info("Verification message via %s to %s", channel.value, recipient)

        if self.output_to_stdout:
            output = [
                "═" * 50,
                f"VERIFICATION SENT VIA {channel.value.upper()}",
                f"To:      {recipient}",
                f"Subject: {message.subject or '(No Subject)'}",
                f"Body:    {message.body_text}",
            ]
            if message.body_html:
                output.append(f"HTML:    [Available: {len(message.body_html)} bytes]")
            output.append("═" * 50)
            print("\n".join(output))

        return DeliveryReceipt.sent(recipient, channel, provider_id="console-debug")


__all__: list[str] = ["ConsoleGateway"]
