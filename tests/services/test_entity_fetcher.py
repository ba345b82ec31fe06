from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from app.models.catalog import Product
from app.services.catalog import fetcher as fetcher_module
from app.services.catalog.errors import EntityStoreError, ProductNotFoundError
from app.services.catalog.fetcher import EntityFetcher
from app.services.catalog.repositories import InMemoryEntityStore
from tests.helpers.metrics_stub import StubMetrics


class _FlakyStore(InMemoryEntityStore):
    """Store whose secondary lookups fail on demand."""

    def __init__(self, *, failing: set[str], **kwargs) -> None:
        super().__init__(**kwargs)
        self._failing = failing

    async def get_founder(self, founder_id: int):
        if "founder" in self._failing:
            raise EntityStoreError("founders offline")
        return await super().get_founder(founder_id)

    async def get_category(self, category_id: int):
        if "category" in self._failing:
            raise EntityStoreError("categories offline")
        return await super().get_category(category_id)

    async def list_revenue_records(self, product_id: int):
        if "revenue" in self._failing:
            raise TimeoutError("revenue_data timed out")
        return await super().list_revenue_records(product_id)


class _BarrierStore(InMemoryEntityStore):
    """Each secondary lookup waits until all three are in flight."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.in_flight = 0
        self._all_started = asyncio.Event()

    async def _arrive(self) -> None:
        self.in_flight += 1
        if self.in_flight == 3:
            self._all_started.set()
        await asyncio.wait_for(self._all_started.wait(), timeout=1.0)

    async def get_founder(self, founder_id: int):
        await self._arrive()
        return await super().get_founder(founder_id)

    async def get_category(self, category_id: int):
        await self._arrive()
        return await super().get_category(category_id)

    async def list_revenue_records(self, product_id: int):
        await self._arrive()
        return await super().list_revenue_records(product_id)


def _product(**overrides) -> Product:
    payload = {
        "id": 5,
        "name": "Solo",
        "founder_id": 1,
        "category_id": 1,
        "date_added": datetime(2024, 2, 1, tzinfo=timezone.utc),
    }
    payload.update(overrides)
    return Product(**payload)


@pytest.mark.asyncio
async def test_fetch_returns_product_and_relations(catalog_store):
    fetched = await EntityFetcher(catalog_store).fetch(42)

    assert fetched.product.id == 42
    assert fetched.founder is not None and fetched.founder.name == "F1"
    assert fetched.category is not None and fetched.category.name == "C1"
    assert sorted(record.id for record in fetched.revenue_records) == [1, 2]


@pytest.mark.asyncio
async def test_missing_product_raises_not_found():
    with pytest.raises(ProductNotFoundError) as excinfo:
        await EntityFetcher(InMemoryEntityStore()).fetch(99)

    assert excinfo.value.code == "404_PRODUCT_NOT_FOUND"
    assert excinfo.value.product_id == 99


@pytest.mark.asyncio
async def test_secondary_lookups_run_concurrently():
    store = _BarrierStore(products=[_product()])

    fetched = await EntityFetcher(store).fetch(5)

    assert store.in_flight == 3
    assert fetched.founder is None
    assert fetched.revenue_records == ()


@pytest.mark.asyncio
async def test_absent_references_skip_lookups():
    store = _FlakyStore(
        failing={"founder", "category"},
        products=[_product(founder_id=None, category_id=None)],
    )

    fetched = await EntityFetcher(store).fetch(5)

    assert fetched.founder is None
    assert fetched.category is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failing",
    [{"founder"}, {"category"}, {"revenue"}, {"founder", "category", "revenue"}],
)
async def test_secondary_failures_degrade_to_missing(monkeypatch, catalog_store, failing):
    stub = StubMetrics()
    monkeypatch.setattr(fetcher_module, "metrics", stub)
    store = _FlakyStore(
        failing=failing,
        products=[await catalog_store.get_product(42)],
        founders=[await catalog_store.get_founder(1)],
        categories=[await catalog_store.get_category(1)],
        revenue_records=await catalog_store.list_revenue_records(42),
    )

    fetched = await EntityFetcher(store).fetch(42)

    assert fetched.product.id == 42
    assert (fetched.founder is None) == ("founder" in failing)
    assert (fetched.category is None) == ("category" in failing)
    assert (fetched.revenue_records == ()) == ("revenue" in failing)
    assert stub.names().count("catalog.partial_data_unavailable") == len(failing)


class _PrimaryDownStore(InMemoryEntityStore):
    async def get_product(self, product_id: int):
        raise EntityStoreError("products offline")


@pytest.mark.asyncio
async def test_primary_lookup_failure_propagates():
    with pytest.raises(EntityStoreError) as excinfo:
        await EntityFetcher(_PrimaryDownStore()).fetch(42)

    assert excinfo.value.code == "503_ENTITY_STORE_UNAVAILABLE"
