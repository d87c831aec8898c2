from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


_SSL_MODES = {"require", "verify-ca", "verify-full"}


def normalize_async_url(url: str) -> tuple[str, bool]:
    """
    Coerce common Postgres connection strings to the asyncpg driver.

    Hosted providers hand out `postgres://...?sslmode=require`; asyncpg rejects `sslmode`,
    so it is stripped and reported back as an ssl flag instead.
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    url = url.replace("postgresql+psycopg://", "postgresql+asyncpg://")
    url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    parsed = sa.engine.make_url(url)
    sslmode = parsed.query.get("sslmode")
    if sslmode is None:
        return url, False
    parsed = parsed.difference_update_query(["sslmode"])
    return parsed.render_as_string(hide_password=False), sslmode in _SSL_MODES


def create_engine(database_url: str, *, ssl: bool = False, pool_size: int = 5) -> AsyncEngine:
    url, url_ssl = normalize_async_url(database_url)
    connect_args: dict[str, Any] = {}
    if ssl or url_ssl:
        connect_args["ssl"] = "require"
    # No overflow: pool_size is the cap on concurrent inserts. Bound parameters carry password hashes.
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=0,
        hide_parameters=True,
        connect_args=connect_args,
    )
