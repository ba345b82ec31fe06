import asyncio
from datetime import date, datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.catalog import Category, Founder, Product, RevenueRecord, VerificationTier
from app.services.catalog.repositories import InMemoryEntityStore


class _SyncASGIClient:
    """Minimal synchronous wrapper around httpx.AsyncClient for ASGI apps."""

    def __init__(self, app):
        transport = httpx.ASGITransport(app=app)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    def request(self, method: str, url: str, **kwargs):
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture
def client():
    """Create test client compatible with older/newer httpx releases."""
    try:
        test_client = TestClient(app)
        yield test_client
    except TypeError:
        fallback_client = _SyncASGIClient(app)
        try:
            yield fallback_client
        finally:
            fallback_client.close()


@pytest.fixture
def catalog_store() -> InMemoryEntityStore:
    """Product 42 with a founder, a category and two founder-reported revenue records."""
    return InMemoryEntityStore(
        products=[
            Product(
                id=42,
                name="LemonSqueezer",
                description="Subscription analytics for indie hackers.",
                url="https://lemonsqueezer.example.com",
                founder_id=1,
                category_id=1,
                date_added=datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
            )
        ],
        founders=[Founder(id=1, name="F1", bio="Bootstrapper.")],
        categories=[Category(id=1, name="C1")],
        revenue_records=[
            RevenueRecord(
                id=1,
                product_id=42,
                mrr=1000,
                arr=12000,
                date_reported=date(2024, 1, 1),
                verification_tier_id=2,
            ),
            RevenueRecord(
                id=2,
                product_id=42,
                mrr=2000,
                arr=24000,
                date_reported=date(2024, 3, 1),
                verification_tier_id=2,
                source_url="https://twitter.com/f1/status/2",
            ),
        ],
        verification_tiers=[
            VerificationTier(
                id=2,
                tier_name="Tier 2 – Founder Reported",
                confidence_level="Medium",
                description="Revenue reported directly by the founder.",
            )
        ],
    )
