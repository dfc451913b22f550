"""
BackupObject model representing one snapshot file in object storage.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class BackupObject(BaseModel):
    """
    One backup snapshot in object storage (read-only input).

    Attributes:
        key: Storage key of the object
        last_modified: Last modification time reported by the store
        size: Object size in bytes, when reported
    """

    key: str = Field(..., min_length=1)
    last_modified: datetime | None = None
    size: int | None = Field(default=None, ge=0)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "key": "backups/2025-11-17T02-00-00.json.gz",
                "last_modified": "2025-11-17T02:00:04Z",
                "size": 1048576
            }
        }
