"""Composed read model rendered by the product detail page."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, computed_field

from app.models.catalog import (
    Category,
    Founder,
    Product,
    RevenueRecord,
    TierBucket,
    VerificationTier,
)

BADGE_LABELS: dict[TierBucket, str] = {
    TierBucket.VERIFIED: "Verified",
    TierBucket.FOUNDER_REPORTED: "Founder Reported",
    TierBucket.COMMUNITY_REPORTED: "Community Reported",
}
NO_DESCRIPTION = "No description available"
NO_VERIFICATION_INFO = "No verification information available"
NOT_AVAILABLE = "N/A"


def format_revenue(amount: float | None) -> str:
    """Render a revenue figure as whole US dollars, or N/A when missing or zero."""
    if not amount:
        return NOT_AVAILABLE
    return f"${round(amount):,}"


class TierBadge(BaseModel):
    """Trust badge shown next to the revenue figures."""

    model_config = ConfigDict(frozen=True)

    bucket: TierBucket = TierBucket.NONE
    confidence_level: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def label(self) -> str | None:
        return BADGE_LABELS.get(self.bucket)

    @computed_field  # type: ignore[misc]
    @property
    def visible(self) -> bool:
        return self.bucket is not TierBucket.NONE


class ProductView(BaseModel):
    """Product joined with its founder, category and current verified revenue."""

    model_config = ConfigDict(frozen=True)

    product: Product
    founder: Founder | None = None
    category: Category | None = None
    revenue: RevenueRecord | None = None
    verification_tier: VerificationTier | None = None
    badge: TierBadge = TierBadge()

    @computed_field  # type: ignore[misc]
    @property
    def description_text(self) -> str:
        return self.product.description or NO_DESCRIPTION

    @computed_field  # type: ignore[misc]
    @property
    def date_added_display(self) -> str:
        """Month and year the product was listed, e.g. January 2024."""
        return self.product.date_added.strftime("%B %Y")

    @computed_field  # type: ignore[misc]
    @property
    def mrr_display(self) -> str:
        return format_revenue(self.revenue.mrr if self.revenue else None)

    @computed_field  # type: ignore[misc]
    @property
    def arr_display(self) -> str:
        return format_revenue(self.revenue.arr if self.revenue else None)

    @computed_field  # type: ignore[misc]
    @property
    def verification_text(self) -> str:
        if self.verification_tier and self.verification_tier.description:
            return self.verification_tier.description
        return NO_VERIFICATION_INFO
