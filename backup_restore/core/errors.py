"""
Error kinds raised by the backup import pipeline.

Configuration, location and parse errors abort a run before any write.
ArchivalFailed is the only non-fatal kind; the orchestrator logs it and
continues.
"""

from typing import Any


class BackupImportError(Exception):
    """Base class for all import pipeline errors."""


class ConfigurationMissing(BackupImportError):
    """Raised at startup when required configuration is absent or invalid."""

    def __init__(self, missing: list[str], message: str | None = None):
        self.missing = list(missing)
        super().__init__(
            message or f"Missing required configuration: {', '.join(self.missing)}"
        )


class NoBackupFound(BackupImportError):
    """Raised when no backup object matches under the prefix."""

    def __init__(self, bucket: str, prefix: str):
        self.bucket = bucket
        self.prefix = prefix
        super().__init__(f"No backup files under s3://{bucket}/{prefix}")


class MalformedBackup(BackupImportError):
    """Raised when a backup object cannot be decompressed or parsed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed backup {key}: {reason}")


class ArchivalFailed(BackupImportError):
    """Raised when the raw payload cannot be archived."""

    def __init__(self, key: str, cause: BaseException):
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to archive raw payload of {key}: {cause}")


class WriteFailed(BackupImportError):
    """
    Raised when an upsert batch fails.

    Attributes:
        entity_type: Entity type being written
        batch_index: Zero-based index of the failing batch
        cause: Error reported by the target store
        written: Records committed by earlier batches of this entity type
        summary: Partial import summary, attached by the orchestrator
    """

    def __init__(
        self,
        entity_type: str,
        batch_index: int,
        cause: BaseException,
        written: int = 0,
    ):
        self.entity_type = entity_type
        self.batch_index = batch_index
        self.cause = cause
        self.written = written
        self.summary: Any = None
        super().__init__(
            f"Upsert of {entity_type} failed at batch {batch_index}: {cause}"
        )
