"""Client for the payment verification endpoint."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from app.config import settings
from app.models.payment import PaymentState


class PaymentVerificationError(RuntimeError):
    """Base error for payment verification failures."""

    def __init__(
        self, message: str = "Payment verification failed", code: str = "PAYMENT_VERIFY_ERROR"
    ) -> None:
        super().__init__(message)
        self.code = code


class PaymentVerificationTimeoutError(PaymentVerificationError):
    """Raised when the verification request times out."""

    def __init__(self, message: str = "Payment verification timed out") -> None:
        super().__init__(message, code="PAYMENT_VERIFY_TIMEOUT")


class PaymentVerificationHTTPError(PaymentVerificationError):
    """Raised when the endpoint answers with a non-success status."""

    def __init__(self, status_code: int, message: str = "Payment verification failed") -> None:
        super().__init__(message, code=f"PAYMENT_VERIFY_{status_code}")
        self.status_code = status_code


class PaymentVerificationSchemaError(PaymentVerificationError):
    """Raised when the response body does not match the verification contract."""

    def __init__(self, message: str = "Unexpected payment verification response") -> None:
        super().__init__(message, code="PAYMENT_VERIFY_SCHEMA_ERR")


class VerificationResult(BaseModel):
    """`data` object returned by a successful verification call."""

    status: PaymentState
    payment_id: str
    amount: float = Field(ge=0)
    processor: str
    tier: str
    verified: bool = False


class PaymentVerificationClient:
    """Async wrapper around the verify-payment function."""

    def __init__(
        self,
        endpoint_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not endpoint_url:
            raise ValueError("PAYMENT_VERIFY_URL is required for payment verification.")
        if not api_key:
            raise ValueError(
                "PAYMENT_VERIFY_API_KEY is required to create a PaymentVerificationClient."
            )
        self._endpoint_url = endpoint_url
        self._api_key = api_key
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls) -> PaymentVerificationClient:
        """Instantiate the client from PAYMENT_VERIFY_* settings."""
        return cls(
            endpoint_url=settings.payment_verify_url or "",
            api_key=settings.payment_verify_api_key or "",
            timeout=settings.payment_verify_timeout_seconds,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._owns_http_client:
            await self._http.aclose()

    async def verify(self, *, payment_id: str, processor: str) -> VerificationResult:
        """POST the payment reference and return the parsed verification result."""
        payload = {"payment_id": payment_id, "processor": processor}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "apikey": self._api_key,
        }

        try:
            response = await self._http.post(self._endpoint_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise PaymentVerificationTimeoutError() from exc
        except httpx.HTTPError as exc:
            raise PaymentVerificationError(f"HTTP error verifying payment: {exc}") from exc

        if response.status_code in (408, 504):
            raise PaymentVerificationTimeoutError()
        if not response.is_success:
            raise PaymentVerificationHTTPError(response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentVerificationSchemaError(
                "Failed to decode payment verification response JSON."
            ) from exc

        data: Any = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise PaymentVerificationSchemaError("`data` missing from verification response.")
        try:
            return VerificationResult.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error["loc"])
            raise PaymentVerificationSchemaError(
                f"Invalid payment verification response fields: {fields or 'data'}"
            ) from exc

    async def __aenter__(self) -> PaymentVerificationClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
