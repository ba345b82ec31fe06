"""API endpoint the payment-return page polls for a payment's status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.models.payment import PaymentStatus, PaymentUnavailable
from app.services.pages import PaymentReturnPage
from app.services.payments.status import PaymentStatusResolver, get_payment_status_resolver

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/payments/status", response_model=PaymentStatus | PaymentUnavailable)
async def get_payment_status(
    payment_id: str | None = Query(None, description="Processor payment identifier."),
    processor: str | None = Query(None, description="Processor tag, e.g. stripe."),
    wait: bool = Query(False, description="Re-check pending payments with backoff."),
    resolver: PaymentStatusResolver = Depends(get_payment_status_resolver),
) -> PaymentStatus | PaymentUnavailable:
    """Verify a payment once (or until settled when ``wait`` is set)."""
    page = PaymentReturnPage(resolver, poll=wait)
    try:
        check = await page.load(payment_id, processor)
    finally:
        page.teardown()
    if check is None:  # pragma: no cover - a single request never supersedes itself
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    outcome = check.status.value if isinstance(check, PaymentStatus) else check.state
    logger.info(
        "payments.api_status",
        extra={"processor": processor, "wait": wait, "status": outcome},
    )
    return check
