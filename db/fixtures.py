from __future__ import annotations

import hashlib
from datetime import date as Date
from pathlib import Path
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class User(StrictModel):
    id: UUID
    name: Annotated[str, Field(min_length=1, max_length=255)]
    email: Annotated[str, Field(min_length=3)]
    # Plaintext; only ever stored hashed.
    password: Annotated[str, Field(min_length=1)]


class Customer(StrictModel):
    id: UUID
    name: Annotated[str, Field(min_length=1, max_length=255)]
    email: Annotated[str, Field(min_length=3, max_length=255)]
    image_url: Annotated[str, Field(max_length=255)]


class Invoice(StrictModel):
    id: UUID | None = None
    customer_id: UUID
    # Minor currency units (cents).
    amount: Annotated[int, Field(ge=0)]
    status: Literal["pending", "paid"]
    date: Date


class RevenueRecord(StrictModel):
    month: Annotated[str, Field(min_length=1, max_length=4)]
    revenue: int


class FixtureSet(StrictModel):
    users: list[User] = Field(default_factory=list)
    customers: list[Customer] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    revenue: list[RevenueRecord] = Field(default_factory=list)


def _det_uuid(*parts: str) -> UUID:
    h = hashlib.sha256("||".join(parts).encode("utf-8")).hexdigest()
    return UUID(h[:32])


def invoice_id(invoice: Invoice, position: int) -> UUID:
    """
    Stable primary key for an invoice.

    Fixture invoices usually come without an id. Deriving one from the record keeps
    re-runs conflict-skipping instead of inserting a fresh server-generated row each time.
    """
    if invoice.id is not None:
        return invoice.id
    return _det_uuid(
        "invoice",
        str(position),
        str(invoice.customer_id),
        str(invoice.amount),
        invoice.status,
        invoice.date.isoformat(),
    )


def load_fixtures(path: str | Path | None = None) -> FixtureSet:
    if path is None:
        from db.placeholder_data import PLACEHOLDER_DATA

        return FixtureSet.model_validate(PLACEHOLDER_DATA)
    return FixtureSet.model_validate_json(Path(path).read_text(encoding="utf-8"))
