"""Verification metrics helpers for Prometheus integration.

Usage:
    ```python
    from cqrs_ddd_verification.observability import VerificationMetrics

    with VerificationMetrics.delivery(Channel.SMS):
        receipt = await gateway.send(...)

    VerificationMetrics.record_issue(Channel.SMS, Purpose.LOGIN, IssueOutcome.ISSUED)
    ```
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Generator

    from .domain.enums import Channel, IssueOutcome, Purpose, VerifyOutcome


class _VerificationMetricsRegistry:
    """Registry for verification Prometheus metrics.

    Lazily initializes Prometheus metrics on first use.
    """

    def __init__(self) -> None:
        self._issued: Any = None
        self._attempts: Any = None
        self._delivery: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Initialize Prometheus metrics if available."""
        if self._initialized:
            return

        try:
            from prometheus_client import Counter, Histogram

            self._issued = Counter(
                "verification_challenges_issued_total",
                "Challenge issuance requests by outcome",
                ["channel", "purpose", "outcome"],
            )
            self._attempts = Counter(
                "verification_attempts_total",
                "Code submissions by outcome",
                ["purpose", "outcome"],
            )
            self._delivery = Histogram(
                "verification_delivery_duration_seconds",
                "Delivery gateway call duration",
                ["channel"],
            )
        except ImportError:
            _logger.debug("prometheus_client not available, metrics disabled")

        self._initialized = True

    @property
    def issued(self) -> Any:
        self._ensure_initialized()
        return self._issued

    @property
    def attempts(self) -> Any:
        self._ensure_initialized()
        return self._attempts

    @property
    def delivery_duration(self) -> Any:
        self._ensure_initialized()
        return self._delivery


# Global registry instance
_registry = _VerificationMetricsRegistry()


class VerificationMetrics:
    """Helpers for recording verification metrics.

    Integrates with Prometheus when available but works as a no-op
    otherwise. Recording a metric never raises.
    """

    @staticmethod
    def record_issue(
        channel: Channel | None, purpose: Purpose, outcome: IssueOutcome
    ) -> None:
        if not _registry.issued:
            return
        try:
            _registry.issued.labels(
                channel=channel.value if channel else "unknown",
                purpose=purpose.value,
                outcome=outcome.value,
            ).inc()
        except Exception:
            _logger.debug("Failed to record issue metric")

    @staticmethod
    def record_attempt(purpose: Purpose | None, outcome: VerifyOutcome) -> None:
        if not _registry.attempts:
            return
        try:
            _registry.attempts.labels(
                purpose=purpose.value if purpose else "unknown",
                outcome=outcome.value,
            ).inc()
        except Exception:
            _logger.debug("Failed to record attempt metric")

    @staticmethod
    @contextmanager
    def delivery(channel: Channel) -> Generator[None, None, None]:
        """Context manager timing one gateway call, including failures."""
        start = time.monotonic()
        try:
            yield
        finally:
            duration = time.monotonic() - start
            if _registry.delivery_duration:
                try:
                    _registry.delivery_duration.labels(channel=channel.value).observe(
                        duration
                    )
                except Exception:
                    _logger.debug("Failed to record delivery histogram")


__all__: list[str] = ["VerificationMetrics"]
