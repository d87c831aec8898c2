from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SeedSuccessResponse(StrictModel):
    message: str = "Database seeded successfully"
    timestamp: datetime


class SeedErrorResponse(StrictModel):
    error: str
    details: str
