"""Request and response bodies of the verification HTTP surface."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ...domain.device import TrustedDevice
from ...domain.enums import (
    Channel,
    IssueOutcome,
    Purpose,
    SubjectType,
    VerifyOutcome,
)
from ...domain.results import IssueResult, VerifyResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendRequest(_CamelModel):
    subject_id: str
    subject_type: SubjectType
    channel: Channel
    purpose: Purpose


class ResendRequest(_CamelModel):
    challenge_id: str


class VerifyRequest(_CamelModel):
    challenge_id: str
    code: str
    remember_device: bool = False


class IssueResponse(_CamelModel):
    outcome: IssueOutcome
    challenge_id: str | None = None
    channel: Channel | None = None
    masked_destination: str | None = None
    expires_at: datetime | None = None
    retry_after_seconds: int | None = None

    @classmethod
    def from_result(cls, result: IssueResult) -> "IssueResponse":
        return cls(
            outcome=result.outcome,
            challenge_id=result.challenge_id,
            channel=result.channel,
            masked_destination=result.masked_destination,
            expires_at=result.expires_at,
            retry_after_seconds=result.retry_after_seconds,
        )


class VerifyResponse(_CamelModel):
    status: VerifyOutcome
    subject_id: str | None = None
    subject_type: SubjectType | None = None
    tenant_id: str | None = None
    purpose: Purpose | None = None
    remaining_attempts: int | None = None
    locked: bool = False
    device_trusted: bool = False

    @classmethod
    def from_result(
        cls, result: VerifyResult, device_trusted: bool = False
    ) -> "VerifyResponse":
        return cls(
            status=result.outcome,
            subject_id=result.subject_id,
            subject_type=result.subject_type,
            tenant_id=result.tenant_id,
            purpose=result.purpose,
            remaining_attempts=result.remaining_attempts,
            locked=result.locked,
            device_trusted=device_trusted,
        )


class DeviceResponse(_CamelModel):
    id: str
    label: str
    source_ip: str | None = None
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime

    @classmethod
    def from_device(cls, device: TrustedDevice) -> "DeviceResponse":
        return cls(
            id=device.id,
            label=device.label,
            source_ip=device.source_ip,
            created_at=device.created_at,
            last_used_at=device.last_used_at,
            expires_at=device.expires_at,
        )


class RevokeAllResponse(_CamelModel):
    removed: int
