"""
Document model as stored in the `documents` table.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .customer import CANONICAL_ID_REGEX

DocumentStatus = Literal["present", "missing"]


class Document(BaseModel):
    """
    Normalized document record.

    Attributes:
        id: Canonical identifier (PK)
        customer_id: Canonical identifier of the owning customer
        title: Document title, "Document" when the backup has none
        url: Public URL, if the document was shared
        status: "present" or "missing"
        created_at: Creation time in the source system
    """

    id: str = Field(..., pattern=CANONICAL_ID_REGEX)
    customer_id: str | None = Field(default=None, pattern=CANONICAL_ID_REGEX)
    title: str = Field(..., min_length=1)
    url: str | None = None
    status: DocumentStatus = "present"
    created_at: datetime | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5d0c8a39-64a2-5b0e-9c3f-0a3b5e2f7d44",
                "customer_id": "0b7e4c4e-7a1b-5f0e-8d55-3f8a1e2c9b10",
                "title": "Signed contract",
                "url": "https://files.example.com/s/abc123",
                "status": "present"
            }
        }
