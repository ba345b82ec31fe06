from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import create_engine

from app.config import settings

logger = logging.getLogger(__name__)


def create_catalog_engine(
    database_url: str,
    *,
    pool_min_size: int | None = None,
    pool_max_size: int | None = None,
) -> tuple[Engine, str]:
    """Create a sync engine for DATABASE_URL and return it with its backend label."""
    if not database_url:
        raise ValueError("DATABASE_URL is required to create a catalog engine.")

    parsed_url = make_url(database_url)
    sync_url, connect_args, drivername = coerce_sync_database_url(parsed_url)
    pool_min = max(pool_min_size or settings.db_pool_min_size, 1)
    pool_max = max(pool_max_size or settings.db_pool_max_size, pool_min)
    is_sqlite = drivername.startswith("sqlite")
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug and not is_sqlite,
        "connect_args": connect_args,
        "pool_pre_ping": not is_sqlite,
    }
    if not is_sqlite:
        engine_kwargs["pool_size"] = pool_min
        engine_kwargs["max_overflow"] = max(pool_max - pool_min, 0)

    engine = create_engine(sync_url, **engine_kwargs)
    logger.info(
        "catalog.database.initialized",
        extra={"url": parsed_url.render_as_string(hide_password=True)},
    )
    return engine, backend_label(parsed_url, drivername)


def coerce_sync_database_url(url: URL) -> tuple[str, dict[str, Any], str]:
    """Convert async connection strings into sync SQLAlchemy URLs."""
    drivername = url.drivername
    connect_args: dict[str, Any] = {}
    if drivername.endswith("+asyncpg"):
        drivername = drivername.replace("+asyncpg", "+psycopg2")
    elif drivername.endswith("+aiosqlite"):
        drivername = drivername.replace("+aiosqlite", "")
    query = dict(url.query) if url.query else {}
    removed_ssl = query.pop("ssl", None) is not None
    sync_url = url.set(drivername=drivername, query=query)

    host = (url.host or "").lower()
    if drivername.startswith("postgresql") and "sslmode" not in query:
        if removed_ssl or "supabase.co" in host:
            connect_args["sslmode"] = "require"
    if drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return sync_url.render_as_string(hide_password=False), connect_args, drivername


def backend_label(url: URL, drivername: str) -> str:
    if "supabase.co" in (url.host or "").lower():
        return "supabase"
    if drivername.startswith("sqlite"):
        return "sqlite"
    return "postgres"


def check_database_health(engine: Engine) -> bool:
    """Check if the catalog database is accessible."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.error("catalog.database.health_failed", extra={"error": str(exc)})
        return False
