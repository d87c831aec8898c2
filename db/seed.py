from __future__ import annotations

import argparse
import asyncio
import json
import os
import re
import sys
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
import structlog
from passlib.context import CryptContext
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateTable

from db import schema
from db.engine import create_engine
from db.fixtures import Customer, FixtureSet, Invoice, RevenueRecord, User, invoice_id, load_fixtures
from db.logging import configure_logging
from db.passwords import hash_password, make_context
from db.settings import SETTINGS


logger = structlog.get_logger(__name__)

_EXTENSION_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _error_text(exc: BaseException) -> str:
    # SQLAlchemy wraps driver errors with the statement and its bound parameters (password hashes
    # included); callers only get the driver message.
    if isinstance(exc, sa.exc.DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class SeedStepError(Exception):
    """A pipeline step failed; the message is the underlying error text."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(_error_text(cause))
        self.step = step
        self.cause = cause


@dataclass(frozen=True)
class StepResult:
    name: str
    # Insert attempts issued, not rows persisted. None for steps that insert nothing.
    attempted: int | None


@dataclass(frozen=True)
class SeedStep:
    name: str
    run: Callable[[], Awaitable[int | None]]


@dataclass
class SeedReport:
    started_at: datetime
    finished_at: datetime | None = None
    steps: list[StepResult] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {s.name: s.attempted for s in self.steps if s.attempted is not None}

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": self.counts(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


def create_extension_sql(extension: str) -> sa.TextClause:
    if not _EXTENSION_NAME.match(extension):
        raise ValueError(f"invalid extension name: {extension!r}")
    return sa.text(f'CREATE EXTENSION IF NOT EXISTS "{extension}"')


def insert_or_skip(table: sa.Table, row: dict[str, Any]) -> postgresql.Insert:
    # No conflict target: any unique key (users.id or users.email) makes the insert a no-op.
    return pg_insert(table).values(**row).on_conflict_do_nothing()


async def setup_extensions(engine: AsyncEngine, extension: str = "uuid-ossp") -> None:
    stmt = create_extension_sql(extension)
    async with engine.begin() as conn:
        await conn.execute(stmt)
    logger.info("extension_ready", extension=extension)


async def ensure_table(engine: AsyncEngine, table: sa.Table) -> None:
    async with engine.begin() as conn:
        await conn.execute(CreateTable(table, if_not_exists=True))


async def _insert_row(engine: AsyncEngine, table: sa.Table, row: dict[str, Any]) -> None:
    async with engine.begin() as conn:
        await conn.execute(insert_or_skip(table, row))


async def _gather_inserts(inserts: Sequence[Coroutine[Any, Any, None]]) -> int:
    # Inserts of one table are independent; all must finish before the next table starts.
    try:
        async with asyncio.TaskGroup() as tg:
            for insert in inserts:
                tg.create_task(insert)
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None
    return len(inserts)


async def _seed_rows(engine: AsyncEngine, table: sa.Table, rows: Sequence[dict[str, Any]]) -> int:
    await ensure_table(engine, table)
    attempted = await _gather_inserts([_insert_row(engine, table, row) for row in rows])
    logger.info("seeded_table", table=table.name, attempted=attempted)
    return attempted


async def seed_users(
    engine: AsyncEngine,
    users: Sequence[User],
    *,
    password_context: CryptContext | None = None,
) -> int:
    await ensure_table(engine, schema.users)

    async def insert_user(user: User) -> None:
        # bcrypt is CPU bound; keep it off the event loop so inserts still overlap.
        hashed = await asyncio.to_thread(hash_password, user.password, password_context)
        await _insert_row(
            engine,
            schema.users,
            {"id": user.id, "name": user.name, "email": user.email, "password": hashed},
        )

    attempted = await _gather_inserts([insert_user(u) for u in users])
    logger.info("seeded_table", table="users", attempted=attempted)
    return attempted


async def seed_customers(engine: AsyncEngine, customers: Sequence[Customer]) -> int:
    return await _seed_rows(engine, schema.customers, [c.model_dump() for c in customers])


async def seed_invoices(engine: AsyncEngine, invoices: Sequence[Invoice]) -> int:
    rows = [dict(inv.model_dump(), id=invoice_id(inv, i)) for i, inv in enumerate(invoices)]
    return await _seed_rows(engine, schema.invoices, rows)


async def seed_revenue(engine: AsyncEngine, revenue: Sequence[RevenueRecord]) -> int:
    return await _seed_rows(engine, schema.revenue, [r.model_dump() for r in revenue])


def build_pipeline(
    engine: AsyncEngine,
    fixtures: FixtureSet,
    *,
    uuid_extension: str = "uuid-ossp",
    password_context: CryptContext | None = None,
) -> list[SeedStep]:
    """
    Ordered seeding steps.

    The extension must come first since every keyed table defaults its id to
    uuid_generate_v4(). The entity steps have no dependency on each other.
    """
    return [
        SeedStep("extensions", lambda: setup_extensions(engine, uuid_extension)),
        SeedStep("users", lambda: seed_users(engine, fixtures.users, password_context=password_context)),
        SeedStep("customers", lambda: seed_customers(engine, fixtures.customers)),
        SeedStep("invoices", lambda: seed_invoices(engine, fixtures.invoices)),
        SeedStep("revenue", lambda: seed_revenue(engine, fixtures.revenue)),
    ]


async def run_pipeline(steps: Sequence[SeedStep]) -> SeedReport:
    report = SeedReport(started_at=_now())
    logger.info("seed_started", steps=[s.name for s in steps])
    for step in steps:
        try:
            attempted = await step.run()
        except Exception as exc:
            raise SeedStepError(step.name, exc) from exc
        report.steps.append(StepResult(name=step.name, attempted=attempted))
    report.finished_at = _now()
    logger.info("seed_finished", counts=report.counts())
    return report


async def seed(
    engine: AsyncEngine,
    fixtures: FixtureSet,
    *,
    uuid_extension: str = "uuid-ossp",
    password_context: CryptContext | None = None,
) -> SeedReport:
    steps = build_pipeline(engine, fixtures, uuid_extension=uuid_extension, password_context=password_context)
    return await run_pipeline(steps)


async def _seed_with_engine(
    database_url: str,
    fixtures: FixtureSet,
    *,
    ssl: bool,
    uuid_extension: str,
    bcrypt_rounds: int,
) -> SeedReport:
    engine = create_engine(database_url, ssl=ssl)
    try:
        return await seed(
            engine,
            fixtures,
            uuid_extension=uuid_extension,
            password_context=make_context(bcrypt_rounds),
        )
    finally:
        await engine.dispose()


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the dashboard database with fixture rows.")
    parser.add_argument("--database-url", default=os.getenv("DATABASE_URL") or SETTINGS.database_url)
    parser.add_argument("--fixtures", default=None, help="JSON file with users/customers/invoices/revenue arrays.")
    parser.add_argument("--uuid-extension", default=SETTINGS.uuid_extension)
    parser.add_argument("--bcrypt-rounds", type=int, default=SETTINGS.bcrypt_rounds)
    parser.add_argument("--ssl", action="store_true", default=SETTINGS.database_ssl, help="Require TLS.")
    parser.add_argument("--log-level", default=SETTINGS.log_level)
    args = parser.parse_args(argv)

    # stdout carries only the JSON report.
    configure_logging(args.log_level, stream=sys.stderr)

    fixtures = load_fixtures(args.fixtures)
    try:
        report = asyncio.run(
            _seed_with_engine(
                args.database_url,
                fixtures,
                ssl=args.ssl,
                uuid_extension=args.uuid_extension,
                bcrypt_rounds=args.bcrypt_rounds,
            )
        )
    except SeedStepError as exc:
        logger.error("seed_failed", step=exc.step, error=str(exc), exc_info=exc.cause)
        sys.exit(1)

    print(json.dumps(report.to_dict(), indent=2, default=str))


if __name__ == "__main__":
    main()
