"""
Object storage access: capability interface, backup locator and payload reader.
"""

from .locator import ObjectLocator, is_backup_key, normalize_prefix
from .object_store import ObjectPage, ObjectStore, S3ObjectStore, create_s3_client
from .reader import PayloadReader

__all__ = [
    "ObjectStore",
    "ObjectPage",
    "S3ObjectStore",
    "create_s3_client",
    "ObjectLocator",
    "PayloadReader",
    "is_backup_key",
    "normalize_prefix",
]
