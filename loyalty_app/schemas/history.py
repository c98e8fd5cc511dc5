# loyalty_app/schemas/history.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import model_validator
from sqlmodel import SQLModel


class PointsLedgerEntry(SQLModel):
    """
    A `points_ledger` row. Positive points are earned, negative spent.
    """

    id: uuid.UUID
    transaction_type: str
    description: str
    points: int
    store_id: uuid.UUID | None = None
    expires_at: datetime | None = None
    created_at: datetime


class PurchaseRead(SQLModel):
    """
    A `purchases` row with the joined store name flattened in.
    """

    id: uuid.UUID
    receipt_reference: str
    total_amount: float
    discount_applied: float = 0
    points_earned: int = 0
    items_summary: Any = None
    purchase_date: datetime
    store_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_store(cls, data):
        if isinstance(data, dict) and isinstance(data.get("stores"), dict):
            return {**data, "store_name": data["stores"].get("name")}
        return data
