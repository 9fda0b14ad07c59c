"""Verification engine: issuance, delivery, verification and resend.

The engine is stateless; every decision is made against the challenge store,
so any number of engines may serve the same store concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from .codes import CodeGenerator
from .config import VerificationConfig
from .delivery.messages import DeliveryReceipt, render_message
from .domain.challenge import Challenge, utcnow
from .domain.enums import IssueOutcome, VerifyOutcome
from .domain.results import IssueResult, VerifyResult
from .exceptions import DestinationUnavailableError, SubjectNotFoundError
from .masking import mask_destination
from .observability import VerificationMetrics
from .throttle import ResendThrottle

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .accounts import AccountResolver
    from .delivery.messages import RenderedMessage
    from .domain.enums import Channel, Purpose, SubjectType
    from .domain.results import ChallengeStats
    from .ports import IChallengeStore, IDeliveryGateway
    from .request_context import RequestContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssueRequest:
    """Issue request from a registration, login or contact-change flow.

    Carries no destination: it is looked up from the subject's account.
    """

    subject_id: str
    subject_type: SubjectType
    tenant_id: str
    channel: Channel
    purpose: Purpose


class VerificationEngine:
    """
    Orchestrates the challenge lifecycle.

    Expected outcomes (rate limited, expired, locked, wrong code, replay) are
    returned as :class:`IssueResult` / :class:`VerifyResult`. Only
    infrastructure failures (store, entropy source, gateway configuration)
    raise.

    Example:
        ```python
        engine = VerificationEngine(store, gateway, accounts=resolver)
        issued = await engine.request_challenge(
            IssueRequest(subject_id, SubjectType.CUSTOMER_ACCOUNT, tenant_id,
                         Channel.SMS, Purpose.LOGIN)
        )
        result = await engine.verify(issued.challenge_id, code, tenant_id=tenant_id)
        ```
    """

    def __init__(
        self,
        store: IChallengeStore,
        gateway: IDeliveryGateway,
        *,
        config: VerificationConfig | None = None,
        accounts: AccountResolver | None = None,
        throttle: ResendThrottle | None = None,
        code_generator: CodeGenerator | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config or VerificationConfig()
        self._store = store
        self._gateway = gateway
        self._accounts = accounts
        self._clock = clock
        self._codes = code_generator or CodeGenerator(
            self.config.code_length, secret=self.config.digest_secret
        )
        self._throttle = throttle or ResendThrottle(
            store, self.config.cooldown_seconds, clock=clock
        )

    # ── Issue ────────────────────────────────────────────────────────

    async def issue(
        self,
        subject_id: str,
        subject_type: SubjectType,
        tenant_id: str,
        channel: Channel,
        destination: str,
        purpose: Purpose,
        source_ip: str | None = None,
        user_agent: str | None = None,
    ) -> IssueResult:
        """Issue a new challenge and deliver its code to ``destination``.

        Any live challenge of the same (tenant, subject, purpose) chain is
        superseded in the same store operation that inserts the new one.

        Raises:
            EntropySourceError: If no code could be generated.
            ChallengeStoreError: If the store fails.
        """
        # 1. Cool-down, keyed by the chain rather than by challenge id
        decision = await self._throttle.allow(tenant_id, subject_id, subject_type, purpose)
        if not decision.ok:
            logger.warning(
                "Rate limited %s challenge for subject %s (retry after %ds)",
                purpose.value,
                subject_id,
                decision.retry_after_seconds,
            )
            VerificationMetrics.record_issue(channel, purpose, IssueOutcome.RATE_LIMITED)
            return IssueResult.rate_limited(decision.retry_after_seconds)

        # 2. Code, digest and display-safe destination
        generated = self._codes.generate()
        masked = mask_destination(channel, destination)
        now = self._clock()
        challenge = Challenge(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            subject_id=subject_id,
            subject_type=subject_type,
            purpose=purpose,
            channel=channel,
            code_digest=generated.digest,
            masked_destination=masked,
            max_attempts=self.config.max_attempts,
            created_at=now,
            expires_at=now + timedelta(seconds=self.config.ttl_seconds),
            source_ip=source_ip,
            user_agent=user_agent,
        )

        # 3. Supersede-then-insert as one store operation
        superseded = await self._store.supersede_and_create(challenge, now)
        if superseded:
            logger.debug(
                "Superseded %d live %s challenge(s) for subject %s",
                superseded,
                purpose.value,
                subject_id,
            )

        # 4. Deliver; the plaintext code is dropped after this call either way
        message = render_message(
            generated.code,
            purpose,
            ttl_minutes=self.config.ttl_minutes,
            channel=channel,
        )
        receipt = await self._deliver(challenge, destination, message)

        if not receipt.ok:
            await self._store.mark_delivery_failed(tenant_id, challenge.id, self._clock())
            logger.warning(
                "Delivery of challenge %s via %s to %s failed: %s",
                challenge.id,
                channel.value,
                masked,
                receipt.error,
            )
            VerificationMetrics.record_issue(channel, purpose, IssueOutcome.DELIVERY_FAILED)
            return IssueResult.delivery_failed(challenge.id, channel, masked)

        logger.info(
            "Issued %s challenge %s for subject %s via %s to %s",
            purpose.value,
            challenge.id,
            subject_id,
            channel.value,
            masked,
        )
        VerificationMetrics.record_issue(channel, purpose, IssueOutcome.ISSUED)
        return IssueResult.issued(challenge.id, channel, masked, challenge.expires_at)

    async def _deliver(
        self, challenge: Challenge, destination: str, message: RenderedMessage
    ) -> DeliveryReceipt:
        timeout = self.config.delivery_timeout_seconds
        try:
            with VerificationMetrics.delivery(challenge.channel):
                return await asyncio.wait_for(
                    self._gateway.send(challenge.channel, destination, message),
                    timeout=timeout,
                )
        except asyncio.TimeoutError:
            return DeliveryReceipt.failed(
                challenge.masked_destination,
                challenge.channel,
                error=f"gateway timed out after {timeout}s",
            )
        except Exception:
            # Leave no live challenge behind a misconfigured or broken gateway.
            logger.error(
                "Gateway raised while delivering challenge %s", challenge.id, exc_info=True
            )
            await self._store.mark_delivery_failed(
                challenge.tenant_id, challenge.id, self._clock()
            )
            raise

    async def request_challenge(
        self,
        request: IssueRequest,
        context: RequestContext | None = None,
    ) -> IssueResult:
        """Issue a challenge to the destination on the subject's account."""
        destination = await self._resolve_destination(
            request.tenant_id, request.subject_id, request.subject_type, request.channel
        )
        if isinstance(destination, IssueOutcome):
            VerificationMetrics.record_issue(request.channel, request.purpose, destination)
            return IssueResult.failed(destination)

        return await self.issue(
            request.subject_id,
            request.subject_type,
            request.tenant_id,
            request.channel,
            destination,
            request.purpose,
            source_ip=context.ip_address if context else None,
            user_agent=context.user_agent if context else None,
        )

    async def _resolve_destination(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        channel: Channel,
    ) -> str | IssueOutcome:
        if self._accounts is None:
            logger.warning("No account resolver configured; cannot look up %s", subject_id)
            return IssueOutcome.SUBJECT_NOT_FOUND
        try:
            return await self._accounts.resolve_destination(
                tenant_id, subject_id, subject_type, channel
            )
        except SubjectNotFoundError:
            logger.warning("Subject %s (%s) not found", subject_id, subject_type.value)
            return IssueOutcome.SUBJECT_NOT_FOUND
        except DestinationUnavailableError:
            logger.warning("Subject %s has no %s destination", subject_id, channel.value)
            return IssueOutcome.DESTINATION_UNAVAILABLE

    # ── Verify ───────────────────────────────────────────────────────

    async def verify(
        self,
        challenge_id: str,
        code: str,
        *,
        tenant_id: str,
    ) -> VerifyResult:
        """Check ``code`` against a challenge of ``tenant_id``.

        An id that is unknown or belongs to another tenant yields
        ``INVALID_CHALLENGE``.
        """
        now = self._clock()
        challenge = await self._store.get(tenant_id, challenge_id)
        if challenge is None:
            return self._failed(None, VerifyOutcome.INVALID_CHALLENGE)

        terminal = self._terminal_outcome(challenge, now)
        if terminal is not None:
            return self._failed(challenge, terminal)

        if not self._codes.matches(code, challenge.code_digest):
            updated = await self._store.increment_attempt(tenant_id, challenge_id)
            if updated is None:
                # Lost a race with another submission
                return await self._reload_outcome(tenant_id, challenge_id, now)

            remaining = updated.remaining_attempts
            if remaining:
                logger.warning(
                    "Invalid code for challenge %s (%d attempt(s) left)",
                    challenge_id,
                    remaining,
                )
            else:
                logger.warning(
                    "Challenge %s locked after %d failed attempts",
                    challenge_id,
                    updated.attempts,
                )
            VerificationMetrics.record_attempt(challenge.purpose, VerifyOutcome.INVALID_CODE)
            return VerifyResult.invalid_code(remaining)

        verified = await self._store.mark_verified(tenant_id, challenge_id, now)
        if verified is None:
            return await self._reload_outcome(tenant_id, challenge_id, now)

        logger.info(
            "Verified %s challenge %s for subject %s",
            verified.purpose.value,
            challenge_id,
            verified.subject_id,
        )
        VerificationMetrics.record_attempt(verified.purpose, VerifyOutcome.VERIFIED)
        return VerifyResult.verified(
            verified.subject_id,
            verified.subject_type,
            verified.tenant_id,
            verified.purpose,
        )

    @staticmethod
    def _terminal_outcome(challenge: Challenge, now: datetime) -> VerifyOutcome | None:
        if challenge.verified_at is not None:
            return VerifyOutcome.ALREADY_VERIFIED
        if challenge.superseded_at is not None:
            return VerifyOutcome.EXPIRED
        if challenge.delivery_failed_at is not None:
            return VerifyOutcome.INVALID_CHALLENGE
        if challenge.is_expired(now):
            return VerifyOutcome.EXPIRED
        if challenge.is_locked:
            return VerifyOutcome.LOCKED
        return None

    async def _reload_outcome(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> VerifyResult:
        challenge = await self._store.get(tenant_id, challenge_id)
        if challenge is None:
            return self._failed(None, VerifyOutcome.INVALID_CHALLENGE)
        outcome = self._terminal_outcome(challenge, now)
        return self._failed(challenge, outcome or VerifyOutcome.INVALID_CHALLENGE)

    @staticmethod
    def _failed(challenge: Challenge | None, outcome: VerifyOutcome) -> VerifyResult:
        if challenge is not None and outcome is not VerifyOutcome.INVALID_CHALLENGE:
            logger.warning("Verification of challenge %s: %s", challenge.id, outcome.value)
        VerificationMetrics.record_attempt(
            challenge.purpose if challenge else None, outcome
        )
        return VerifyResult.failed(outcome)

    # ── Resend ───────────────────────────────────────────────────────

    async def resend(
        self,
        challenge_id: str,
        *,
        tenant_id: str,
        context: RequestContext | None = None,
    ) -> IssueResult:
        """Issue a fresh code for the chain of a previous challenge.

        The previous challenge only supplies the subject, channel and purpose;
        the destination is looked up again since it is never stored. The
        cool-down is the one :meth:`issue` applies to the chain.
        """
        previous = await self._store.get(tenant_id, challenge_id)
        if previous is None:
            return IssueResult.failed(IssueOutcome.INVALID_CHALLENGE)
        if previous.verified_at is not None:
            VerificationMetrics.record_issue(
                previous.channel, previous.purpose, IssueOutcome.ALREADY_VERIFIED
            )
            return IssueResult.failed(IssueOutcome.ALREADY_VERIFIED)

        destination = await self._resolve_destination(
            tenant_id, previous.subject_id, previous.subject_type, previous.channel
        )
        if isinstance(destination, IssueOutcome):
            VerificationMetrics.record_issue(previous.channel, previous.purpose, destination)
            return IssueResult.failed(destination)

        return await self.issue(
            previous.subject_id,
            previous.subject_type,
            previous.tenant_id,
            previous.channel,
            destination,
            previous.purpose,
            source_ip=context.ip_address if context else previous.source_ip,
            user_agent=context.user_agent if context else previous.user_agent,
        )

    # ── Reporting ────────────────────────────────────────────────────

    async def summarize(
        self, tenant_id: str, since: datetime | None = None
    ) -> list[ChallengeStats]:
        """Per (purpose, channel) counts of the tenant's challenges.

        ``since`` defaults to the start of the retention window.
        """
        if since is None:
            since = self._clock() - timedelta(days=self.config.challenge_retention_days)
        return await self._store.summarize(tenant_id, since)


__all__: list[str] = ["VerificationEngine", "IssueRequest"]
