"""Reconciles a payment attempt's status against the verification endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

from app.clients.payments import (
    PaymentVerificationClient,
    PaymentVerificationError,
    VerificationResult,
)
from app.config import settings
from app.core.backoff import backoff_schedule
from app.models.payment import (
    UNKNOWN_TIER,
    VERIFIED_MESSAGE,
    PaymentState,
    PaymentStatus,
    PaymentUnavailable,
)
from app.observability.metrics import metrics

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "Failed to verify payment status"
NOT_CONFIGURED_MESSAGE = "Payment verification is not configured"

PaymentCheck = PaymentStatus | PaymentUnavailable


class PaymentVerifier(Protocol):
    """Minimal contract for the verification call."""

    async def verify(self, *, payment_id: str, processor: str) -> VerificationResult:
        ...


def status_from_result(result: VerificationResult) -> PaymentStatus:
    return PaymentStatus(
        payment_id=result.payment_id,
        processor=result.processor,
        amount=result.amount,
        tier=result.tier,
        status=result.status,
        message=VERIFIED_MESSAGE if result.verified else None,
    )


def failed_status(payment_id: str, processor: str, message: str | None) -> PaymentStatus:
    return PaymentStatus(
        payment_id=payment_id,
        processor=processor,
        amount=0,
        tier=UNKNOWN_TIER,
        status=PaymentState.FAILED,
        message=message or FALLBACK_ERROR_MESSAGE,
    )


class PaymentStatusResolver:
    """Single-shot payment check with an opt-in bounded re-check for pending payments."""

    def __init__(
        self,
        verifier: PaymentVerifier | None,
        *,
        poll_max_attempts: int | None = None,
        poll_base_delay: float | None = None,
        poll_max_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._verifier = verifier
        self._poll_max_attempts = poll_max_attempts or settings.payment_poll_max_attempts
        self._poll_base_delay = (
            settings.payment_poll_base_delay_seconds if poll_base_delay is None else poll_base_delay
        )
        self._poll_max_delay = (
            settings.payment_poll_max_delay_seconds if poll_max_delay is None else poll_max_delay
        )
        self._sleep = sleep

    async def resolve(self, payment_id: str | None, processor: str | None) -> PaymentCheck:
        """Issue at most one verification request and map it to a bounded status."""
        payment_id = (payment_id or "").strip()
        processor = (processor or "").strip()
        if not payment_id or not processor:
            metrics.increment("payments.unavailable")
            logger.info(
                "payments.missing_parameters",
                extra={"has_payment_id": bool(payment_id), "has_processor": bool(processor)},
            )
            return PaymentUnavailable()

        if self._verifier is None:
            logger.error(
                "payments.verifier_missing",
                extra={"payment_id": payment_id, "processor": processor},
            )
            return failed_status(payment_id, processor, NOT_CONFIGURED_MESSAGE)

        start = time.perf_counter()
        outcome = "success"
        try:
            result = await self._verifier.verify(payment_id=payment_id, processor=processor)
        except PaymentVerificationError as exc:
            outcome = "error"
            metrics.increment(
                "payments.verify_failed", tags={"processor": processor, "code": exc.code}
            )
            logger.warning(
                "payments.verify_failed",
                extra={"payment_id": payment_id, "processor": processor, "code": exc.code},
            )
            return failed_status(payment_id, processor, str(exc))
        finally:
            metrics.timing(
                "payments.verify_latency_ms",
                (time.perf_counter() - start) * 1000,
                tags={"processor": processor, "status": outcome},
            )

        status = status_from_result(result)
        metrics.increment(
            "payments.verified", tags={"processor": processor, "status": status.status.value}
        )
        logger.info(
            "payments.verified",
            extra={
                "payment_id": status.payment_id,
                "processor": status.processor,
                "status": status.status.value,
                "verified": result.verified,
            },
        )
        return status

    async def resolve_until_terminal(
        self, payment_id: str | None, processor: str | None
    ) -> PaymentCheck:
        """Re-check a pending payment with backoff until it settles or attempts run out."""
        check: PaymentCheck = PaymentUnavailable()
        for attempt, delay in backoff_schedule(
            max_attempts=self._poll_max_attempts,
            base_delay=self._poll_base_delay,
            factor=2.0,
            max_delay=self._poll_max_delay,
            jitter=0.2,
        ):
            check = await self.resolve(payment_id, processor)
            if isinstance(check, PaymentUnavailable) or check.status.is_terminal:
                return check
            if attempt < self._poll_max_attempts:
                logger.info(
                    "payments.still_pending",
                    extra={"payment_id": check.payment_id, "attempt": attempt, "delay": delay},
                )
                await self._sleep(delay)
        metrics.increment("payments.poll_exhausted")
        return check


_RESOLVER_INSTANCE: PaymentStatusResolver | None = None


def get_payment_status_resolver() -> PaymentStatusResolver:
    """Singleton accessor used by API routes."""
    global _RESOLVER_INSTANCE  # noqa: PLW0603
    if _RESOLVER_INSTANCE is None:
        verifier = (
            PaymentVerificationClient.from_settings()
            if settings.payment_verification_enabled
            else None
        )
        _RESOLVER_INSTANCE = PaymentStatusResolver(verifier)
    return _RESOLVER_INSTANCE
