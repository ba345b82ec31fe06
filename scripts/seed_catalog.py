"""Seed catalog tables from a JSON fixture for local runs and page smoke tests."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from app.config import Settings
from app.core.database import create_catalog_engine
from app.models.catalog import Category, Founder, Product, RevenueRecord, VerificationTier
from app.models.catalog_records import (
    CategoryRecord,
    FounderRecord,
    ProductRecord,
    RevenueDataRecord,
    VerificationTierRecord,
)

logger = logging.getLogger("scripts.seed_catalog")

DEFAULT_FIXTURE = Path("fixtures/catalog/sample_catalog.json")


def build_records(payload: Mapping[str, Any]) -> list[SQLModel]:
    """Validate fixture entries through the domain models and map them to table rows."""
    records: list[SQLModel] = []
    for entry in payload.get("founders", []):
        records.append(FounderRecord(**Founder(**entry).model_dump()))
    for entry in payload.get("categories", []):
        records.append(CategoryRecord(**Category(**entry).model_dump()))
    for entry in payload.get("verification_tiers", []):
        tier = VerificationTier(**entry)
        records.append(
            VerificationTierRecord.from_tier_name(
                id=tier.id,
                tier_name=tier.tier_name,
                confidence_level=tier.confidence_level,
                description=tier.description,
            )
        )
    for entry in payload.get("products", []):
        records.append(ProductRecord(**Product(**entry).model_dump()))
    for entry in payload.get("revenue_data", []):
        records.append(RevenueDataRecord(**RevenueRecord(**entry).model_dump()))
    return records


def seed_catalog(engine: Engine, payload: Mapping[str, Any], *, create_schema: bool = False) -> int:
    """Upsert every fixture row by primary key and return how many were written."""
    if create_schema:
        SQLModel.metadata.create_all(engine)
    records = build_records(payload)
    with Session(engine) as session:
        for record in records:
            session.merge(record)
        session.commit()
    return len(records)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed RipeLemons catalog rows.")
    parser.add_argument(
        "--fixture",
        type=Path,
        default=DEFAULT_FIXTURE,
        help="Path to a catalog fixture JSON file.",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL (falls back to .env).",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing catalog tables before seeding.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    database_url = args.database_url or Settings().database_url
    if not database_url:
        raise RuntimeError("DATABASE_URL is required to seed the catalog.")
    payload = json.loads(args.fixture.read_text(encoding="utf-8"))
    engine, backend = create_catalog_engine(database_url)
    try:
        seeded = seed_catalog(engine, payload, create_schema=args.create_schema)
    finally:
        engine.dispose()
    logger.info(
        "seed_catalog.complete",
        extra={"count": seeded, "backend": backend, "fixture": str(args.fixture)},
    )
    return seeded


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
