"""Domain models for catalog entities read by the product page."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TierBucket(str, Enum):
    """Discrete trust bucket for a verification tier."""

    VERIFIED = "verified"
    FOUNDER_REPORTED = "founder_reported"
    COMMUNITY_REPORTED = "community_reported"
    NONE = "none"


# Priority order matters: the first marker found in a tier name wins.
_TIER_MARKERS: tuple[tuple[str, TierBucket], ...] = (
    ("Tier 1", TierBucket.VERIFIED),
    ("Tier 2", TierBucket.FOUNDER_REPORTED),
    ("Tier 3", TierBucket.COMMUNITY_REPORTED),
)


def classify_tier_name(tier_name: str | None) -> TierBucket:
    """Map a legacy tier name such as "Tier 2 - Founder Reported" to its bucket."""
    name = tier_name or ""
    for marker, bucket in _TIER_MARKERS:
        if marker in name:
            return bucket
    return TierBucket.NONE


class _CatalogModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Founder(_CatalogModel):
    id: int
    name: str
    bio: str | None = None
    twitter_url: str | None = None
    personal_url: str | None = None


class Category(_CatalogModel):
    id: int
    name: str


class Product(_CatalogModel):
    """Listed product; the primary entity of a product page."""

    id: int
    name: str
    description: str | None = None
    url: str | None = None
    founder_id: int | None = None
    category_id: int | None = None
    date_added: datetime

    @model_validator(mode="after")
    def _normalize_timestamp(self) -> Product:
        if self.date_added.tzinfo is None:
            object.__setattr__(self, "date_added", self.date_added.replace(tzinfo=timezone.utc))
        return self


class RevenueRecord(_CatalogModel):
    """One reported MRR/ARR figure for a product."""

    id: int
    product_id: int
    mrr: float | None = Field(default=None, ge=0)
    arr: float | None = Field(default=None, ge=0)
    date_reported: date
    verification_tier_id: int | None = None
    source_url: str | None = None


class VerificationTier(_CatalogModel):
    """How a revenue figure was substantiated.

    ``bucket`` is tagged once when the tier enters the system. Rows that predate
    the tagged column are classified from ``tier_name`` on construction.
    """

    id: int
    tier_name: str
    confidence_level: str | None = None
    description: str | None = None
    bucket: TierBucket | None = Field(
        default=None,
        description="Trust bucket; derived from tier_name when not stored.",
    )

    @model_validator(mode="after")
    def _tag_bucket(self) -> VerificationTier:
        if self.bucket is None:
            object.__setattr__(self, "bucket", classify_tier_name(self.tier_name))
        return self
