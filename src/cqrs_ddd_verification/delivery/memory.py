"""In-memory gateway for test assertions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ..domain.enums import Channel
from ..masking import mask_destination
from ..ports import IDeliveryGateway
from .messages import DeliveryReceipt, RenderedMessage


@dataclass
class SentMessage:
    """Record of a sent message for test assertions."""

    channel: Channel
    destination: str
    message: RenderedMessage


class InMemoryGateway(IDeliveryGateway):
    """
    Test double (Fake) that stores messages in a list for assertions.

    Set ``fail`` to report every delivery as failed, or ``delay`` (seconds)
    to make each send hang before returning.
    """

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.sent_messages: list[SentMessage] = []
        self.fail = fail
        self.delay = delay

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)
        recipient = mask_destination(channel, destination)
        if self.fail:
            return DeliveryReceipt.failed(recipient, channel, error="simulated failure")
        self.sent_messages.append(SentMessage(channel, destination, message))
        return DeliveryReceipt.sent(recipient, channel, provider_id="test-id")

    @property
    def last_message(self) -> SentMessage:
        if not self.sent_messages:
            raise AssertionError("No messages were sent.")
        return self.sent_messages[-1]

    def assert_sent(
        self,
        destination: str,
        channel: Channel,
        count: int = 1,
    ) -> None:
        """Helper for test assertions."""
        matches = [
            m
            for m in self.sent_messages
            if m.destination == destination and m.channel == channel
        ]
        if len(matches) != count:
            raise AssertionError(
                f"Expected {count} messages to {destination} via {channel.value}, "
                f"but found {len(matches)}."
            )

    def clear(self) -> None:
        """Clear all sent messages."""
        self.sent_messages.clear()


__all__: list[str] = ["InMemoryGateway", "SentMessage"]
