"""Twilio SMS and WhatsApp gateways (optional)."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ..domain.enums import Channel
from ..exceptions import DeliveryConfigurationError
from ..masking import mask_phone
from ..ports import IDeliveryGateway
from .messages import DeliveryReceipt, RenderedMessage

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def _default_client_factory(account_sid: str, auth_token: str, timeout: float) -> Any:
    # Lazy import of twilio
    try:
        from twilio.http.http_client import TwilioHttpClient
        from twilio.rest import Client as TwilioClient
    except ImportError as e:
        raise ImportError(
            "twilio is required for Twilio gateways. "
            "Install with: pip install 'cqrs-ddd-verification[twilio]'"
        ) from e
    return TwilioClient(
        account_sid,
        auth_token,
        http_client=TwilioHttpClient(timeout=timeout),
    )


class TwilioSmsGateway(IDeliveryGateway):
    """
    Twilio SMS implementation.

    The Twilio client is blocking, so each send runs in a worker thread and
    the engine's delivery timeout can still bound it.

    Requires twilio library:
    pip install twilio
    """

    channel = Channel.SMS

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str | None = None,
        messaging_service_sid: str | None = None,
        timeout: float = 10.0,
        client_factory: Callable[[str, str, float], Any] | None = None,
    ):
        if not from_number and not messaging_service_sid:
            raise DeliveryConfigurationError(
                self.channel.value,
                "either from_number or messaging_service_sid is required",
            )
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.timeout = timeout
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                self.account_sid, self.auth_token, self.timeout
            )
        return self._client

    def _address(self, number: str) -> str:
        return number

    def _create_message(self, destination: str, body: str) -> Any:
        params: dict[str, Any] = {"to": self._address(destination), "body": body}
        if self.messaging_service_sid:
            params["messaging_service_sid"] = self.messaging_service_sid
        else:
            params["from_"] = self._address(self.from_number or "")
        return self._get_client().messages.create(**params)

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        if channel is not self.channel:
            raise DeliveryConfigurationError(
                channel.value, f"{type(self).__name__} only sends {self.channel.value}"
            )

        recipient = mask_phone(destination)
        try:
            sent = await asyncio.to_thread(
                self._create_message, destination, message.body_text
            )
        except ImportError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error(
                "Twilio %s delivery to %s failed: %s", channel.value, recipient, e
            )
            return DeliveryReceipt.failed(recipient, channel, error=str(e))

        logger.info(
            "%s sent via Twilio to %s (SID: %s)", channel.value, recipient, sent.sid
        )
        return DeliveryReceipt.sent(recipient, channel, provider_id=sent.sid)


class TwilioWhatsAppGateway(TwilioSmsGateway):
    """Twilio WhatsApp implementation.

    Same API as SMS; Twilio routes on the ``whatsapp:`` address prefix.
    """

    channel = Channel.WHATSAPP

    def _address(self, number: str) -> str:
        if number.startswith("whatsapp:"):
            return number
        return f"whatsapp:{number}"


__all__: list[str] = ["TwilioSmsGateway", "TwilioWhatsAppGateway"]
