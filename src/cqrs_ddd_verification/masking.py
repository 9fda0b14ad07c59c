"""Display-safe redaction of phone numbers and e-mail addresses.

Applies to every destination surfaced to a caller or written to a log.
"""

from __future__ import annotations

from .domain.enums import Channel

_EMAIL_FILLER = "****"


def mask_phone(phone: str) -> str:
    """Show only the last four digits of a phone number.

    Formatting characters (``+``, spaces, dashes, parentheses) are dropped
    before masking so the output length depends on the digits alone::

        >>> mask_phone("+254712345678")
        '********5678'
    """
    digits = "".join(c for c in phone if c.isdigit())
    if len(digits) <= 4:
        return "*" * 4
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_email(email: str) -> str:
    """Show the first two and last characters of the local part.

    The domain is kept in full::

        >>> mask_email("johndoe@example.com")
        'jo****e@example.com'

    Local parts of three characters or fewer keep only their first character
    so that nothing short is revealed in full.
    """
    local, sep, domain = email.strip().rpartition("@")
    if not sep or not local or not domain:
        return _EMAIL_FILLER
    if len(local) <= 3:
        return f"{local[0]}{_EMAIL_FILLER}@{domain}"
    return f"{local[:2]}{_EMAIL_FILLER}{local[-1]}@{domain}"


def mask_destination(channel: Channel, destination: str) -> str:
    """Mask ``destination`` according to the channel it belongs to."""
    if channel is Channel.EMAIL:
        return mask_email(destination)
    return mask_phone(destination)


__all__: list[str] = ["mask_phone", "mask_email", "mask_destination"]
