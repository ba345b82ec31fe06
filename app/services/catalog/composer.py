"""Builds the verified-revenue ProductView for a product page load."""

from __future__ import annotations

import logging
import time

from app.models.catalog import RevenueRecord
from app.models.product_view import ProductView
from app.observability.metrics import metrics
from app.services.catalog.fetcher import EntityFetcher, FetchedEntities
from app.services.catalog.repositories import EntityStore, build_entity_store
from app.services.catalog.revenue import select_current_revenue
from app.services.catalog.tiers import ResolvedTier, TierResolver

logger = logging.getLogger(__name__)


def compose_product_view(
    fetched: FetchedEntities,
    revenue: RevenueRecord | None,
    resolved: ResolvedTier,
) -> ProductView:
    """Merge fetched and derived pieces into one immutable view."""
    return ProductView(
        product=fetched.product,
        founder=fetched.founder,
        category=fetched.category,
        revenue=revenue,
        verification_tier=resolved.tier,
        badge=resolved.badge,
    )


class ProductViewService:
    """Runs fetch, revenue selection, tier resolution and composition for one product."""

    def __init__(self, store: EntityStore | None = None) -> None:
        self._store = store or build_entity_store()
        self._fetcher = EntityFetcher(self._store)
        self._tiers = TierResolver(self._store)

    @property
    def store(self) -> EntityStore:
        return self._store

    async def build(self, product_id: int) -> ProductView:
        """Return the view for ``product_id``; raises ProductNotFoundError when absent."""
        start = time.perf_counter()
        fetched = await self._fetcher.fetch(product_id)
        revenue = select_current_revenue(fetched.revenue_records)
        resolved = await self._tiers.resolve(revenue.verification_tier_id if revenue else None)
        view = compose_product_view(fetched, revenue, resolved)
        elapsed_ms = (time.perf_counter() - start) * 1000
        metrics.timing(
            "catalog.view_latency_ms",
            elapsed_ms,
            tags={"bucket": view.badge.bucket.value},
        )
        logger.info(
            "catalog.view_composed",
            extra={
                "product_id": product_id,
                "has_founder": view.founder is not None,
                "has_category": view.category is not None,
                "revenue_id": revenue.id if revenue else None,
                "bucket": view.badge.bucket.value,
                "latency_ms": round(elapsed_ms, 4),
            },
        )
        return view


_SERVICE_INSTANCE: ProductViewService | None = None


def get_product_view_service() -> ProductViewService:
    """Singleton accessor used by API routes."""
    global _SERVICE_INSTANCE  # noqa: PLW0603
    if _SERVICE_INSTANCE is None:
        _SERVICE_INSTANCE = ProductViewService()
    return _SERVICE_INSTANCE
