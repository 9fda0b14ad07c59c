import enum
from datetime import datetime

from sqlalchemy import Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.enums import Channel, Purpose, SubjectType
from .types import UTCDateTime


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models in this package.
    """


def _enum(enum_cls: type[enum.Enum]) -> Enum:
    # Stores the enum value ("login"), not its name, so SQL ordering matches Python.
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class ChallengeModel(Base):
    """
    Model for verification challenges.

    ``live_key`` is set while the challenge is live and cleared when it is
    verified, locked, superseded or marked delivery-failed. Its unique index
    guarantees at most one live challenge per (tenant, subject, purpose).
    """

    __tablename__ = "verification_challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    subject_id: Mapped[str] = mapped_column(String(64))
    subject_type: Mapped[SubjectType] = mapped_column(_enum(SubjectType))
    purpose: Mapped[Purpose] = mapped_column(_enum(Purpose))
    channel: Mapped[Channel] = mapped_column(_enum(Channel))
    code_digest: Mapped[str] = mapped_column(String(128))
    masked_destination: Mapped[str] = mapped_column(String(320))
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, default=5)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime)
    verified_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    superseded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    delivery_failed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    source_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    live_key: Mapped[str | None] = mapped_column(
        String(256), nullable=True, unique=True
    )

    __table_args__ = (
        Index(
            "ix_verification_challenges_chain",
            "tenant_id",
            "subject_type",
            "subject_id",
            "purpose",
            "created_at",
        ),
    )


class TrustedDeviceModel(Base):
    """
    Model for trusted devices.
    One row per (tenant, subject, fingerprint).
    """

    __tablename__ = "verification_trusted_devices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64))
    subject_id: Mapped[str] = mapped_column(String(64))
    subject_type: Mapped[SubjectType] = mapped_column(_enum(SubjectType))
    device_fingerprint: Mapped[str] = mapped_column(String(64))
    label: Mapped[str] = mapped_column(String(64))
    source_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)
    last_used_at: Mapped[datetime] = mapped_column(UTCDateTime)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "subject_type",
            "subject_id",
            "device_fingerprint",
            name="uq_verification_trusted_devices_fingerprint",
        ),
        Index(
            "ix_verification_trusted_devices_subject",
            "tenant_id",
            "subject_type",
            "subject_id",
        ),
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create the verification tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
