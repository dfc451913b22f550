"""
Order model as stored in the `orders` table.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .customer import CANONICAL_ID_REGEX


class Order(BaseModel):
    """
    Normalized order record.

    Attributes:
        id: Canonical identifier (PK)
        customer_id: Canonical identifier of the ordering customer
        total: Order total, 0 when the backup has none
        currency: ISO currency code, "ILS" when the backup has none
        paid: Whether the order was paid
        created_at: Creation time in the source system
    """

    id: str = Field(..., pattern=CANONICAL_ID_REGEX)
    customer_id: str | None = Field(default=None, pattern=CANONICAL_ID_REGEX)
    total: float = 0.0
    currency: str = Field(default="ILS", min_length=1)
    paid: bool = False
    created_at: datetime | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "9a41d7f2-1c3e-5a8b-b2d4-6e0f1a2b3c4d",
                "customer_id": "0b7e4c4e-7a1b-5f0e-8d55-3f8a1e2c9b10",
                "total": 349.9,
                "currency": "ILS",
                "paid": True
            }
        }
