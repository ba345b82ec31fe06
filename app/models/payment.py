"""Payment-return read models."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

VERIFIED_MESSAGE = "Payment verified successfully"
UNKNOWN_TIER = "Unknown"


class PaymentState(str, Enum):
    """Bounded set of statuses a payment attempt can report."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentState.PENDING


_HEADLINES: dict[PaymentState, str] = {
    PaymentState.COMPLETED: "Payment Successful!",
    PaymentState.FAILED: "Payment Failed",
    PaymentState.PENDING: "Payment Processing...",
    PaymentState.EXPIRED: "Payment Expired",
}


class PaymentStatus(BaseModel):
    """Outcome of reconciling one payment attempt against the verification endpoint."""

    model_config = ConfigDict(frozen=True)

    payment_id: str
    processor: str
    amount: float = Field(default=0, ge=0)
    tier: str = UNKNOWN_TIER
    status: PaymentState
    message: str | None = None

    @computed_field  # type: ignore[misc]
    @property
    def headline(self) -> str:
        return _HEADLINES[self.status]


class PaymentUnavailable(BaseModel):
    """Nothing to check: the caller supplied no payment id or processor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    state: Literal["unavailable"] = "unavailable"
    message: str = "Missing payment information"
