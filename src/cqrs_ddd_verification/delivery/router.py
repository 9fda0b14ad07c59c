"""Channel routing across delivery gateways."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..exceptions import DeliveryConfigurationError
from ..ports import IDeliveryGateway

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..domain.enums import Channel
    from .messages import DeliveryReceipt, RenderedMessage

logger = logging.getLogger(__name__)


class ChannelRouter(IDeliveryGateway):
    """
    Gateway that dispatches each send to the gateway registered for its
    channel.

    Example:
        gateway = ChannelRouter({
            Channel.SMS: TwilioSmsGateway(...),
            Channel.WHATSAPP: TwilioWhatsAppGateway(...),
            Channel.EMAIL: SmtpEmailGateway(...),
        })
    """

    def __init__(self, gateways: Mapping[Channel, IDeliveryGateway] | None = None):
        self._gateways: dict[Channel, IDeliveryGateway] = dict(gateways or {})

    def register(self, channel: Channel, gateway: IDeliveryGateway) -> None:
        """Register (or replace) the gateway for ``channel``."""
        self._gateways[channel] = gateway
        logger.debug("Registered %s gateway for %s", type(gateway).__name__, channel.value)

    @property
    def channels(self) -> frozenset[Channel]:
        return frozenset(self._gateways)

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        gateway = self._gateways.get(channel)
        if gateway is None:
            raise DeliveryConfigurationError(channel.value, "no gateway registered")
        return await gateway.send(channel, destination, message)


__all__: list[str] = ["ChannelRouter"]
