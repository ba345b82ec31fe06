"""Resolves a product and its related records for the product page."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar

from app.models.catalog import Category, Founder, Product, RevenueRecord
from app.observability.metrics import metrics
from app.services.catalog.errors import ProductNotFoundError
from app.services.catalog.repositories import EntityStore

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class FetchedEntities:
    """Raw lookups for one product; secondary relations may be missing."""

    product: Product
    founder: Founder | None
    category: Category | None
    revenue_records: tuple[RevenueRecord, ...]


class EntityFetcher:
    """Loads the primary product, then its founder, revenue and category concurrently."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def fetch(self, product_id: int) -> FetchedEntities:
        start = time.perf_counter()
        product = await self._store.get_product(product_id)
        if product is None:
            metrics.increment("catalog.product_not_found")
            logger.info("catalog.product_not_found", extra={"product_id": product_id})
            raise ProductNotFoundError(product_id)

        founder_lookup = (
            self._store.get_founder(product.founder_id) if product.founder_id is not None else None
        )
        category_lookup = (
            self._store.get_category(product.category_id)
            if product.category_id is not None
            else None
        )
        founder, revenue, category = await asyncio.gather(
            self._optional("founder", product_id, founder_lookup),
            self._optional(
                "revenue_records", product_id, self._store.list_revenue_records(product_id)
            ),
            self._optional("category", product_id, category_lookup),
        )
        metrics.timing(
            "catalog.fetch_latency_ms",
            (time.perf_counter() - start) * 1000,
            tags={"partial": founder is None or category is None or revenue is None},
        )
        return FetchedEntities(
            product=product,
            founder=founder,
            category=category,
            revenue_records=tuple(revenue or ()),
        )

    async def _optional(
        self, entity: str, product_id: int, lookup: Awaitable[_T] | None
    ) -> _T | None:
        if lookup is None:
            return None
        try:
            result = await lookup
        except Exception as exc:
            metrics.increment("catalog.partial_data_unavailable", tags={"entity": entity})
            logger.warning(
                "catalog.partial_data_unavailable",
                extra={"product_id": product_id, "entity": entity, "error": str(exc)},
            )
            return None
        if result is None:
            logger.info(
                "catalog.relation_missing",
                extra={"product_id": product_id, "entity": entity},
            )
        return result
