"""
PostgreSQL access: connection pool, batched upserts and payload archival.
"""

from .archive import RAW_BACKUPS_TABLE, RawBackupArchiver
from .connection import DatabaseConnectionPool
from .upsert import (
    DEFAULT_BATCH_SIZE,
    ENTITY_TABLES,
    BatchUpserter,
    PostgresUpsertTarget,
    UpsertResult,
    UpsertTarget,
)

__all__ = [
    "DatabaseConnectionPool",
    "UpsertTarget",
    "PostgresUpsertTarget",
    "BatchUpserter",
    "UpsertResult",
    "RawBackupArchiver",
    "DEFAULT_BATCH_SIZE",
    "ENTITY_TABLES",
    "RAW_BACKUPS_TABLE",
]
