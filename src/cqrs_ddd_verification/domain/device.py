"""Trusted device record."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .enums import SubjectType


class TrustedDevice(BaseModel):
    """A time-bounded exemption from Login challenges for one device.

    ``device_fingerprint`` is a digest of stable request characteristics and
    never raw header values. ``label`` is a display-only guess at the device
    type and plays no part in trust decisions.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    tenant_id: str
    subject_id: str
    subject_type: SubjectType
    device_fingerprint: str
    label: str
    source_ip: str | None = None
    user_agent: str | None = None
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


__all__: list[str] = ["TrustedDevice"]
