"""
Customer model as stored in the `customers` table.
"""

from datetime import datetime

from pydantic import BaseModel, Field

CANONICAL_ID_REGEX = r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"


class Customer(BaseModel):
    """
    Normalized customer record.

    Attributes:
        id: Canonical identifier (PK)
        full_name: Display name, "Unknown" when the backup has none
        email: Contact email
        phone: Contact phone number
        created_at: Creation time in the source system
    """

    id: str = Field(..., pattern=CANONICAL_ID_REGEX)
    full_name: str = Field(..., min_length=1)
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "0b7e4c4e-7a1b-5f0e-8d55-3f8a1e2c9b10",
                "full_name": "Dana Levi",
                "email": "dana@example.com",
                "phone": "+972-50-000-0000",
                "created_at": "2024-03-01T08:30:00Z"
            }
        }
