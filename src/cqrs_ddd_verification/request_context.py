"""Request metadata used for audit fields and device fingerprinting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class RequestContext:
    """HTTP request characteristics relevant to verification.

    Attributes:
        ip_address: Client IP address (X-Forwarded-For or remote addr).
        user_agent: Client user agent string.
        accept_language: Accept-Language header.
        accept_encoding: Accept-Encoding header.
    """

    ip_address: str | None = None
    user_agent: str | None = None
    accept_language: str | None = None
    accept_encoding: str | None = None

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        ip_address: str | None = None,
    ) -> RequestContext:
        """Build a context from raw request headers.

        Header lookup is case-insensitive. When ``ip_address`` is not given,
        the first hop of ``X-Forwarded-For`` is used if present.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        if ip_address is None:
            forwarded = lowered.get("x-forwarded-for")
            if forwarded:
                ip_address = forwarded.split(",")[0].strip() or None
        return cls(
            ip_address=ip_address,
            user_agent=lowered.get("user-agent"),
            accept_language=lowered.get("accept-language"),
            accept_encoding=lowered.get("accept-encoding"),
        )


__all__: list[str] = ["RequestContext"]
