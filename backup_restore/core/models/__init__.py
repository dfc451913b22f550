"""
Data models for the backup import pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .backup_object import BackupObject
from .customer import Customer
from .document import Document, DocumentStatus
from .import_summary import EntitySummary, ImportSummary
from .order import Order

__all__ = [
    "BackupObject",
    "Customer",
    "Document",
    "DocumentStatus",
    "Order",
    "EntitySummary",
    "ImportSummary",
]
