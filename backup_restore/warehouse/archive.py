"""
Archival of raw backup payloads for traceability.
"""

from datetime import datetime, timezone
from typing import Any

from backup_restore.core.errors import ArchivalFailed
from backup_restore.observability.logger import get_logger

from .upsert import UpsertTarget

logger = get_logger(__name__)

RAW_BACKUPS_TABLE = "raw_backups"


class RawBackupArchiver:
    """
    Stores the parsed backup document next to the imported data.
    """

    def __init__(self, target: UpsertTarget, table: str = RAW_BACKUPS_TABLE):
        self.target = target
        self.table = table

    def archive(self, source_key: str, payload: dict[str, Any]) -> None:
        """
        Insert one archival row for a backup.

        Args:
            source_key: Storage key the payload was read from
            payload: Parsed backup document

        Raises:
            ArchivalFailed: If the insert fails
        """
        row = {
            "source_key": source_key,
            "payload": payload,
            "archived_at": datetime.now(timezone.utc),
        }
        try:
            self.target.insert(self.table, row)
        except Exception as e:
            raise ArchivalFailed(source_key, e) from e

        logger.info(f"Archived raw payload of {source_key} to {self.table}")
