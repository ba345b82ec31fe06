"""Entity store backends that serve catalog lookups to the product view pipeline."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Protocol, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from app.config import settings
from app.core.database import check_database_health, create_catalog_engine
from app.models.catalog import Category, Founder, Product, RevenueRecord, VerificationTier
from app.models.catalog_records import (
    CategoryRecord,
    FounderRecord,
    ProductRecord,
    RevenueDataRecord,
    VerificationTierRecord,
)
from app.observability.metrics import metrics
from app.services.catalog.errors import EntityStoreError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class EntityStore(Protocol):
    """Read contract the product view pipeline consumes."""

    async def get_product(self, product_id: int) -> Product | None:
        ...

    async def get_founder(self, founder_id: int) -> Founder | None:
        ...

    async def get_category(self, category_id: int) -> Category | None:
        ...

    async def list_revenue_records(self, product_id: int) -> list[RevenueRecord]:
        ...

    async def get_verification_tier(self, tier_id: int) -> VerificationTier | None:
        ...

    async def ping(self) -> bool:
        ...


class InMemoryEntityStore(EntityStore):
    """Thread-safe store used for API/local development and tests."""

    def __init__(
        self,
        *,
        products: Iterable[Product] = (),
        founders: Iterable[Founder] = (),
        categories: Iterable[Category] = (),
        revenue_records: Iterable[RevenueRecord] = (),
        verification_tiers: Iterable[VerificationTier] = (),
    ) -> None:
        self._lock = Lock()
        self._products = {item.id: item for item in products}
        self._founders = {item.id: item for item in founders}
        self._categories = {item.id: item for item in categories}
        self._tiers = {item.id: item for item in verification_tiers}
        self._revenue: dict[int, list[RevenueRecord]] = {}
        for record in revenue_records:
            self._revenue.setdefault(record.product_id, []).append(record)

    def add_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product

    def add_founder(self, founder: Founder) -> None:
        with self._lock:
            self._founders[founder.id] = founder

    def add_category(self, category: Category) -> None:
        with self._lock:
            self._categories[category.id] = category

    def add_revenue_record(self, record: RevenueRecord) -> None:
        with self._lock:
            self._revenue.setdefault(record.product_id, []).append(record)

    def add_verification_tier(self, tier: VerificationTier) -> None:
        with self._lock:
            self._tiers[tier.id] = tier

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> InMemoryEntityStore:
        """Build a store from a catalog fixture payload, validating every entry."""
        store = cls()
        for entry in payload.get("founders", []):
            store.add_founder(Founder(**entry))
        for entry in payload.get("categories", []):
            store.add_category(Category(**entry))
        for entry in payload.get("verification_tiers", []):
            store.add_verification_tier(VerificationTier(**entry))
        for entry in payload.get("products", []):
            store.add_product(Product(**entry))
        for entry in payload.get("revenue_data", []):
            store.add_revenue_record(RevenueRecord(**entry))
        return store

    @classmethod
    def from_fixture(cls, path: Path) -> InMemoryEntityStore:
        return cls.from_payload(json.loads(path.read_text(encoding="utf-8")))

    async def get_product(self, product_id: int) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    async def get_founder(self, founder_id: int) -> Founder | None:
        with self._lock:
            return self._founders.get(founder_id)

    async def get_category(self, category_id: int) -> Category | None:
        with self._lock:
            return self._categories.get(category_id)

    async def list_revenue_records(self, product_id: int) -> list[RevenueRecord]:
        with self._lock:
            return list(self._revenue.get(product_id, []))

    async def get_verification_tier(self, tier_id: int) -> VerificationTier | None:
        with self._lock:
            return self._tiers.get(tier_id)

    async def ping(self) -> bool:
        return True


class SqlEntityStore(EntityStore):
    """SQLModel-backed store reading the catalog tables from Postgres/Supabase.

    Queries run on a sync engine inside worker threads, one session per lookup,
    so concurrent lookups for the same page never share a connection.
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_min_size: int | None = None,
        pool_max_size: int | None = None,
        auto_create_schema: bool = False,
    ) -> None:
        self._engine: Engine
        self._engine, backend = create_catalog_engine(
            database_url,
            pool_min_size=pool_min_size,
            pool_max_size=pool_max_size,
        )
        if auto_create_schema:
            SQLModel.metadata.create_all(self._engine)
        self._metrics_tags = {"store": backend}

    @property
    def engine(self) -> Engine:
        return self._engine

    def dispose(self) -> None:
        """Close the underlying SQLAlchemy engine."""
        self._engine.dispose()

    async def get_product(self, product_id: int) -> Product | None:
        return await self._run(
            "product", lambda session: _first(session, ProductRecord, product_id)
        )

    async def get_founder(self, founder_id: int) -> Founder | None:
        return await self._run(
            "founder", lambda session: _first(session, FounderRecord, founder_id)
        )

    async def get_category(self, category_id: int) -> Category | None:
        return await self._run(
            "category", lambda session: _first(session, CategoryRecord, category_id)
        )

    async def get_verification_tier(self, tier_id: int) -> VerificationTier | None:
        return await self._run(
            "verification_tier",
            lambda session: _first(session, VerificationTierRecord, tier_id),
        )

    async def list_revenue_records(self, product_id: int) -> list[RevenueRecord]:
        def _query(session: Session) -> list[RevenueRecord]:
            statement = select(RevenueDataRecord).where(RevenueDataRecord.product_id == product_id)
            return [row.to_domain() for row in session.exec(statement).all()]

        return await self._run("revenue_records", _query)

    async def ping(self) -> bool:
        return await asyncio.to_thread(check_database_health, self._engine)

    async def _run(self, entity: str, query: Callable[[Session], _T]) -> _T:
        def _execute() -> _T:
            with self._session() as session:
                return query(session)

        try:
            return await asyncio.to_thread(_execute)
        except SQLAlchemyError as exc:
            metrics.increment(
                "catalog.store.errors", tags={**self._metrics_tags, "entity": entity}
            )
            logger.exception(
                "catalog.store.error",
                extra={"entity": entity, "backend": self._metrics_tags["store"]},
            )
            raise EntityStoreError(f"Failed to load {entity}: {exc}") from exc

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self._engine) as session:
            yield session


def _first(session: Session, model: type, entity_id: int):
    row = session.get(model, entity_id)
    return row.to_domain() if row is not None else None


def build_entity_store(
    database_url: str | None = None, *, fixture_path: str | None = None
) -> EntityStore:
    """Instantiate an EntityStore using DATABASE_URL when available.

    Without a database the in-memory store is loaded from CATALOG_FIXTURE_PATH
    when that file exists.
    """
    resolved_url = database_url or settings.database_url
    if not resolved_url:
        return _build_memory_store(fixture_path or settings.catalog_fixture_path)
    try:
        store = SqlEntityStore(
            resolved_url,
            pool_min_size=settings.db_pool_min_size,
            pool_max_size=settings.db_pool_max_size,
        )
        logger.info("catalog.store.initialized", extra={"backend": "database"})
        return store
    except Exception:
        logger.exception("catalog.store.init_failed", extra={"backend": "database"})
        raise


def _build_memory_store(fixture_path: str | None) -> InMemoryEntityStore:
    path = Path(fixture_path) if fixture_path else None
    if path is None or not path.is_file():
        logger.info(
            "catalog.store.initialized",
            extra={"backend": "memory", "fixture": str(path) if path else None, "seeded": False},
        )
        return InMemoryEntityStore()
    store = InMemoryEntityStore.from_fixture(path)
    logger.info(
        "catalog.store.initialized",
        extra={"backend": "memory", "fixture": str(path), "seeded": True},
    )
    return store
