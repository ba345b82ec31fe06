from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from app.models.catalog import Product, RevenueRecord, TierBucket, VerificationTier
from app.models.product_view import NO_DESCRIPTION, NO_VERIFICATION_INFO, format_revenue
from app.services.catalog.composer import ProductViewService
from app.services.catalog.errors import EntityStoreError, ProductNotFoundError
from app.services.catalog.repositories import InMemoryEntityStore


def _bare_product(product_id: int = 7) -> Product:
    return Product(id=product_id, name="Bare", date_added=datetime(2024, 6, 1, tzinfo=timezone.utc))


@pytest.mark.asyncio
async def test_latest_revenue_and_founder_reported_badge(catalog_store):
    view = await ProductViewService(catalog_store).build(42)

    assert view.product.id == 42
    assert view.founder is not None and view.founder.name == "F1"
    assert view.category is not None and view.category.name == "C1"
    assert view.revenue is not None and view.revenue.mrr == 2000
    assert view.verification_tier is not None and view.verification_tier.id == 2
    assert view.badge.bucket is TierBucket.FOUNDER_REPORTED
    assert view.mrr_display == "$2,000"
    assert view.date_added_display == "January 2024"
    assert view.arr_display == "$24,000"
    assert view.verification_text == "Revenue reported directly by the founder."


@pytest.mark.asyncio
async def test_unknown_product_produces_no_view():
    with pytest.raises(ProductNotFoundError):
        await ProductViewService(InMemoryEntityStore()).build(99)


@pytest.mark.asyncio
async def test_product_without_revenue_has_no_revenue_or_badge():
    store = InMemoryEntityStore(products=[_bare_product()])

    view = await ProductViewService(store).build(7)

    assert view.revenue is None
    assert view.verification_tier is None
    assert view.badge.bucket is TierBucket.NONE
    assert view.founder is None
    assert view.category is None
    assert view.mrr_display == "N/A"
    assert view.description_text == NO_DESCRIPTION
    assert view.verification_text == NO_VERIFICATION_INFO


@pytest.mark.asyncio
async def test_repeated_builds_are_structurally_identical(catalog_store):
    service = ProductViewService(catalog_store)

    first = await service.build(42)
    second = await service.build(42)

    assert first == second
    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_tier_of_current_record_wins_over_older_records():
    store = InMemoryEntityStore(
        products=[_bare_product()],
        revenue_records=[
            RevenueRecord(
                id=1,
                product_id=7,
                mrr=10,
                date_reported=date(2024, 1, 1),
                verification_tier_id=1,
            ),
            RevenueRecord(
                id=2,
                product_id=7,
                mrr=20,
                date_reported=date(2024, 2, 1),
                verification_tier_id=3,
            ),
        ],
        verification_tiers=[
            VerificationTier(id=1, tier_name="Tier 1 - Verified", confidence_level="High"),
            VerificationTier(id=3, tier_name="Tier 3 - Community Reported", confidence_level="Low"),
        ],
    )

    view = await ProductViewService(store).build(7)

    assert view.revenue is not None and view.revenue.id == 2
    assert view.badge.bucket is TierBucket.COMMUNITY_REPORTED
    assert view.badge.label == "Community Reported"
    assert view.badge.confidence_level == "Low"


@pytest.mark.asyncio
async def test_dangling_tier_reference_keeps_revenue():
    store = InMemoryEntityStore(
        products=[_bare_product()],
        revenue_records=[
            RevenueRecord(
                id=1,
                product_id=7,
                mrr=500,
                date_reported=date(2024, 1, 1),
                verification_tier_id=404,
            ),
        ],
    )

    view = await ProductViewService(store).build(7)

    assert view.revenue is not None and view.revenue.mrr == 500
    assert view.verification_tier is None
    assert view.badge.visible is False


class _SecondaryOutageStore(InMemoryEntityStore):
    async def get_founder(self, founder_id: int):
        raise EntityStoreError("founders offline")

    async def list_revenue_records(self, product_id: int):
        raise EntityStoreError("revenue offline")


@pytest.mark.asyncio
async def test_secondary_outage_still_renders_primary(catalog_store):
    store = _SecondaryOutageStore(
        products=[await catalog_store.get_product(42)],
        categories=[await catalog_store.get_category(1)],
    )

    view = await ProductViewService(store).build(42)

    assert view.product.name == "LemonSqueezer"
    assert view.category is not None
    assert view.founder is None
    assert view.revenue is None
    assert view.badge.bucket is TierBucket.NONE


@pytest.mark.asyncio
async def test_view_is_immutable(catalog_store):
    view = await ProductViewService(catalog_store).build(42)

    with pytest.raises(ValidationError):
        view.revenue = None  # type: ignore[misc]


@pytest.mark.parametrize(
    ("amount", "expected"),
    [(None, "N/A"), (0, "N/A"), (1000, "$1,000"), (1234567.4, "$1,234,567")],
)
def test_format_revenue(amount, expected):
    assert format_revenue(amount) == expected
