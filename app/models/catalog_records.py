"""SQLModel mappings for the catalog tables."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import date, datetime, timezone

import sqlalchemy as sa
from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text
from sqlmodel import Field, SQLModel

from app.models.catalog import (
    Category,
    Founder,
    Product,
    RevenueRecord,
    TierBucket,
    VerificationTier,
    classify_tier_name,
)

# Rows whose stored bucket is not one of these are reclassified from tier_name.
_BUCKET_VALUES = frozenset(bucket.value for bucket in TierBucket)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FounderRecord(SQLModel, table=True):
    __tablename__ = "founders"

    id: int = Field(sa_column=Column(Integer, primary_key=True, nullable=False))
    name: str = Field(sa_column=Column(String(length=255), nullable=False))
    bio: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    twitter_url: str | None = Field(
        default=None, sa_column=Column(String(length=512), nullable=True)
    )
    personal_url: str | None = Field(
        default=None, sa_column=Column(String(length=512), nullable=True)
    )

    def to_domain(self) -> Founder:
        return Founder(
            id=self.id,
            name=self.name,
            bio=self.bio,
            twitter_url=self.twitter_url,
            personal_url=self.personal_url,
        )


class CategoryRecord(SQLModel, table=True):
    __tablename__ = "categories"

    id: int = Field(sa_column=Column(Integer, primary_key=True, nullable=False))
    name: str = Field(sa_column=Column(String(length=255), nullable=False))

    def to_domain(self) -> Category:
        return Category(id=self.id, name=self.name)


class ProductRecord(SQLModel, table=True):
    __tablename__ = "products"

    id: int = Field(sa_column=Column(Integer, primary_key=True, nullable=False))
    name: str = Field(sa_column=Column(String(length=255), nullable=False))
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    url: str | None = Field(default=None, sa_column=Column(String(length=512), nullable=True))
    founder_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    category_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    date_added: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            description=self.description,
            url=self.url,
            founder_id=self.founder_id,
            category_id=self.category_id,
            date_added=self.date_added,
        )


class RevenueDataRecord(SQLModel, table=True):
    __tablename__ = "revenue_data"
    __table_args__ = (sa.Index("ix_revenue_data_product_id", "product_id"),)

    id: int = Field(sa_column=Column(Integer, primary_key=True, nullable=False))
    product_id: int = Field(sa_column=Column(Integer, nullable=False))
    mrr: float | None = Field(default=None, sa_column=Column(Float, nullable=True))
    arr: float | None = Field(default=None, sa_column=Column(Float, nullable=True))
    date_reported: date = Field(sa_column=Column(Date, nullable=False))
    verification_tier_id: int | None = Field(default=None, sa_column=Column(Integer, nullable=True))
    source_url: str | None = Field(
        default=None, sa_column=Column(String(length=512), nullable=True)
    )

    def to_domain(self) -> RevenueRecord:
        return RevenueRecord(
            id=self.id,
            product_id=self.product_id,
            mrr=self.mrr,
            arr=self.arr,
            date_reported=self.date_reported,
            verification_tier_id=self.verification_tier_id,
            source_url=self.source_url,
        )


class VerificationTierRecord(SQLModel, table=True):
    __tablename__ = "verification_tiers"

    id: int = Field(sa_column=Column(Integer, primary_key=True, nullable=False))
    tier_name: str = Field(sa_column=Column(String(length=255), nullable=False))
    confidence_level: str | None = Field(
        default=None, sa_column=Column(String(length=64), nullable=True)
    )
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    bucket: str | None = Field(default=None, sa_column=Column(String(length=32), nullable=True))

    @classmethod
    def from_tier_name(
        cls,
        *,
        id: int,  # noqa: A002 - mirrors the column name
        tier_name: str,
        confidence_level: str | None = None,
        description: str | None = None,
    ) -> VerificationTierRecord:
        """Build a row with its bucket tagged at write time."""
        return cls(
            id=id,
            tier_name=tier_name,
            confidence_level=confidence_level,
            description=description,
            bucket=classify_tier_name(tier_name).value,
        )

    def to_domain(self) -> VerificationTier:
        return VerificationTier(
            id=self.id,
            tier_name=self.tier_name,
            confidence_level=self.confidence_level,
            description=self.description,
            bucket=TierBucket(self.bucket) if self.bucket in _BUCKET_VALUES else None,
        )
