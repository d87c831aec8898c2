from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from db.engine import create_engine
from services.seed.app.settings import SeedServiceSettings


@asynccontextmanager
async def open_engine(settings: SeedServiceSettings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings.database_url, ssl=settings.database_ssl, pool_size=settings.database_pool_size)
    try:
        yield engine
    finally:
        await engine.dispose()


def get_engine(request: Request) -> AsyncEngine:
    # Opened by the app lifespan; there is no module-level engine.
    return request.app.state.engine
