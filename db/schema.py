from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


METADATA = sa.MetaData()

# Provided by the uuid-ossp extension; tables must be created after it exists.
UUID_DEFAULT = sa.text("uuid_generate_v4()")


users = sa.Table(
    "users",
    METADATA,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=UUID_DEFAULT),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("email", sa.Text(), nullable=False, unique=True),
    sa.Column("password", sa.Text(), nullable=False),
)

customers = sa.Table(
    "customers",
    METADATA,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=UUID_DEFAULT),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("email", sa.String(255), nullable=False),
    sa.Column("image_url", sa.String(255), nullable=False),
)

# customer_id is intentionally not a foreign key.
invoices = sa.Table(
    "invoices",
    METADATA,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=UUID_DEFAULT),
    sa.Column("customer_id", UUID(as_uuid=True), nullable=False),
    sa.Column("amount", sa.Integer(), nullable=False),
    sa.Column("status", sa.String(255), nullable=False),
    sa.Column("date", sa.Date(), nullable=False),
)

revenue = sa.Table(
    "revenue",
    METADATA,
    sa.Column("month", sa.String(4), nullable=False, unique=True),
    sa.Column("revenue", sa.Integer(), nullable=False),
)


TABLES: dict[str, sa.Table] = {t.name: t for t in (users, customers, invoices, revenue)}
