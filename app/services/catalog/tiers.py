"""Resolves the verification tier behind a revenue figure into a trust badge."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.models.catalog import TierBucket, VerificationTier
from app.models.product_view import TierBadge
from app.observability.metrics import metrics
from app.services.catalog.repositories import EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTier:
    tier: VerificationTier | None
    badge: TierBadge


NO_TIER = ResolvedTier(tier=None, badge=TierBadge())


def badge_for(tier: VerificationTier | None) -> TierBadge:
    if tier is None:
        return TierBadge()
    bucket = tier.bucket or TierBucket.NONE
    return TierBadge(bucket=bucket, confidence_level=tier.confidence_level or "")


class TierResolver:
    """Looks up a tier by id and labels it; lookups that fail count as no tier."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def resolve(self, tier_id: int | None) -> ResolvedTier:
        if tier_id is None:
            return NO_TIER
        try:
            tier = await self._store.get_verification_tier(tier_id)
        except Exception as exc:
            metrics.increment(
                "catalog.partial_data_unavailable", tags={"entity": "verification_tier"}
            )
            logger.warning(
                "catalog.partial_data_unavailable",
                extra={"tier_id": tier_id, "entity": "verification_tier", "error": str(exc)},
            )
            return NO_TIER
        if tier is None:
            logger.info("catalog.tier_missing", extra={"tier_id": tier_id})
            return NO_TIER
        badge = badge_for(tier)
        metrics.increment("catalog.tier_resolved", tags={"bucket": badge.bucket.value})
        return ResolvedTier(tier=tier, badge=badge)
