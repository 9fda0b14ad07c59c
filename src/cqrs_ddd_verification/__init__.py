"""CQRS-DDD Verification Package

Two-factor verification: "Is this really you?"

Issues one-time codes over SMS, WhatsApp or e-mail, verifies them against a
lockout / expiry / replay state machine, and remembers trusted devices so
repeat Login challenges can be skipped.

Usage:
    ```python
    from cqrs_ddd_verification import (
        Channel,
        IssueRequest,
        Purpose,
        SubjectType,
        VerificationEngine,
    )

    engine = VerificationEngine(store, gateway, accounts=resolver)
    issued = await engine.request_challenge(
        IssueRequest("user-1", SubjectType.CUSTOMER_ACCOUNT, "tenant-1",
                     Channel.SMS, Purpose.LOGIN)
    )
    result = await engine.verify(issued.challenge_id, "123456", tenant_id="tenant-1")
    ```

Submodules:
    - `persistence`: SQLAlchemy async stores and models
    - `memory`: in-memory stores
    - `delivery`: message rendering, Twilio, SMTP, console and fake gateways
    - `contrib.fastapi`: FastAPI router and dependencies
"""

from __future__ import annotations

from .accounts import AccountResolver
from .codes import CodeGenerator, GeneratedCode
from .config import DeviceTrustConfig, VerificationConfig
from .devices import DeviceTrustManager, device_fingerprint, device_label

# Domain
from .domain import (
    Challenge,
    ChallengeStats,
    ChallengeStatus,
    Channel,
    IssueOutcome,
    IssueResult,
    Purpose,
    SubjectType,
    ThrottleDecision,
    TrustedDevice,
    VerifyOutcome,
    VerifyResult,
)
from .engine import IssueRequest, VerificationEngine

# Exceptions
from .exceptions import (
    ChallengeStoreError,
    DeliveryConfigurationError,
    DestinationUnavailableError,
    DomainError,
    EntropySourceError,
    InfrastructureError,
    PersistenceError,
    SessionManagementError,
    SubjectNotFoundError,
    UnitOfWorkError,
    VerificationError,
)
from .masking import mask_destination, mask_email, mask_phone
from .observability import VerificationMetrics

# Ports
from .ports import (
    AccountContact,
    IAccountDirectory,
    IChallengeStore,
    IDeliveryGateway,
    ITrustedDeviceStore,
)
from .reaper import ChallengeReaper, ReapResult
from .request_context import RequestContext
from .throttle import ResendThrottle

__version__ = "0.1.0"

__all__: list[str] = [
    # Engine
    "VerificationEngine",
    "IssueRequest",
    "ResendThrottle",
    "CodeGenerator",
    "GeneratedCode",
    "AccountResolver",
    # Device trust
    "DeviceTrustManager",
    "device_fingerprint",
    "device_label",
    # Config
    "VerificationConfig",
    "DeviceTrustConfig",
    # Domain
    "Challenge",
    "ChallengeStats",
    "ChallengeStatus",
    "Channel",
    "IssueOutcome",
    "IssueResult",
    "Purpose",
    "SubjectType",
    "ThrottleDecision",
    "TrustedDevice",
    "VerifyOutcome",
    "VerifyResult",
    # Ports
    "AccountContact",
    "IAccountDirectory",
    "IChallengeStore",
    "IDeliveryGateway",
    "ITrustedDeviceStore",
    # Support
    "ChallengeReaper",
    "ReapResult",
    "RequestContext",
    "VerificationMetrics",
    "mask_destination",
    "mask_email",
    "mask_phone",
    # Exceptions
    "VerificationError",
    "DomainError",
    "InfrastructureError",
    "SubjectNotFoundError",
    "DestinationUnavailableError",
    "EntropySourceError",
    "PersistenceError",
    "ChallengeStoreError",
    "SessionManagementError",
    "UnitOfWorkError",
    "DeliveryConfigurationError",
]
