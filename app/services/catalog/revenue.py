"""Picks the authoritative revenue record for a product."""

from __future__ import annotations

from collections.abc import Iterable

from app.models.catalog import RevenueRecord


def select_current_revenue(records: Iterable[RevenueRecord]) -> RevenueRecord | None:
    """Return the most recently reported record, or None when there is none.

    Records reported on the same date resolve to the highest id, so the choice
    does not depend on the order the store returned them in.
    """
    return max(records, key=lambda record: (record.date_reported, record.id), default=None)
