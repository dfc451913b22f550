"""
Backup import pipeline orchestration.

Coordinates the flow: locate → read → archive → resolve shapes → normalize → upsert
"""

import time
from typing import Any

from backup_restore.core.errors import ArchivalFailed, WriteFailed
from backup_restore.core.models import EntitySummary, ImportSummary
from backup_restore.core.normalizers import NormalizerSettings, normalize_records
from backup_restore.core.shapes import ENTITY_TYPES, ShapeCatalog
from backup_restore.observability import metrics
from backup_restore.observability.logger import get_logger, log_operation
from backup_restore.storage.locator import ObjectLocator
from backup_restore.storage.reader import PayloadReader
from backup_restore.warehouse.archive import RawBackupArchiver
from backup_restore.warehouse.upsert import BatchUpserter


logger = get_logger(__name__)


class BackupImportPipeline:
    """
    Orchestrates one backup import run.

    Flow:
    1. Locate the newest backup object under the prefix
    2. Read and parse it into one in-memory document
    3. Archive the raw payload (best effort)
    4. For customers, documents, orders in that order:
       resolve the entity array, normalize, drop records without an id,
       upsert in batches
    5. Report raw/kept/written counts per entity type

    The run is atomic only per upsert batch. Entity types written before a
    failure stay committed.
    """

    def __init__(
        self,
        locator: ObjectLocator,
        reader: PayloadReader,
        upserter: BatchUpserter,
        archiver: RawBackupArchiver | None = None,
        shapes: ShapeCatalog | None = None,
        normalizer_settings: NormalizerSettings | None = None,
        dry_run: bool = False,
        debug_summary: bool = False,
    ):
        """
        Initialize import pipeline.

        Args:
            locator: Finds the backup object
            reader: Fetches and parses the backup
            upserter: Writes normalized records
            archiver: Archives the raw payload; None disables archival
            shapes: Candidate paths per entity type
            normalizer_settings: Namespace and URL template for normalizers
            dry_run: Normalize and count without archiving or writing
            debug_summary: Log shape and normalization diagnostics
        """
        self.locator = locator
        self.reader = reader
        self.upserter = upserter
        self.archiver = archiver
        self.shapes = shapes or ShapeCatalog()
        self.normalizer_settings = normalizer_settings or NormalizerSettings()
        self.dry_run = dry_run
        self.debug_summary = debug_summary

    def run(self, key: str | None = None) -> ImportSummary:
        """
        Import one backup.

        Args:
            key: Explicit storage key; the latest backup is used when None

        Returns:
            ImportSummary with per-entity counts

        Raises:
            NoBackupFound: If no backup exists under the prefix
            MalformedBackup: If the backup cannot be parsed
            WriteFailed: If an upsert batch fails; `summary` holds the
                entity types completed so far
        """
        started = time.time()
        try:
            with log_operation("Backup import", logger=logger, dry_run=self.dry_run):
                summary = self._run(key)
        except Exception:
            metrics.record_run(False)
            raise

        summary.duration_seconds = round(time.time() - started, 3)
        metrics.record_run(True)
        self._log_summary(summary)
        return summary

    def _run(self, key: str | None) -> ImportSummary:
        if key is None:
            key = self.locator.latest_key()
        logger.info(f"Importing: {key}")

        document = self.reader.read(key)
        summary = ImportSummary(source_key=key, dry_run=self.dry_run)

        if self.debug_summary:
            logger.info(f"Top-level keys of {key}: {sorted(document)}")

        summary.archived = self._archive(key, document)

        for entity_type in ENTITY_TYPES:
            try:
                self._import_entity(entity_type, document, summary)
            except WriteFailed as e:
                e.summary = summary
                raise

        return summary

    def _archive(self, key: str, document: dict[str, Any]) -> bool:
        if self.archiver is None or self.dry_run:
            return False

        try:
            self.archiver.archive(key, document)
        except ArchivalFailed as e:
            metrics.increment_counter(metrics.archival_failures_total)
            logger.warning(f"{e}; continuing without archive")
            return False
        return True

    def _import_entity(
        self,
        entity_type: str,
        document: dict[str, Any],
        summary: ImportSummary,
    ) -> EntitySummary:
        with log_operation(f"Import {entity_type}", logger=logger, entity_type=entity_type):
            path, raw_records = self.shapes.resolve(document, entity_type)
            records = normalize_records(entity_type, raw_records, self.normalizer_settings)

            if self.debug_summary:
                logger.info(
                    f"{entity_type}: path={path} raw={len(raw_records)} kept={len(records)}"
                    + (f" first={records[0].model_dump(mode='json')}" if records else "")
                )

            if len(records) < len(raw_records):
                logger.info(
                    f"Dropped {len(raw_records) - len(records)} {entity_type} without a usable id"
                )

            entity = EntitySummary(
                entity_type=entity_type,
                path=path,
                raw=len(raw_records),
                kept=len(records),
            )
            summary.entities.append(entity)

            try:
                if not self.dry_run:
                    entity.written = self.upserter.upsert(entity_type, records).written
            except WriteFailed as e:
                entity.written = e.written
                raise
            finally:
                metrics.record_entity_counts(entity_type, entity.raw, entity.kept, entity.written)
            return entity

    def _log_summary(self, summary: ImportSummary) -> None:
        logger.info("=" * 60)
        logger.info(f"IMPORT COMPLETE: {summary.source_key}")
        logger.info("=" * 60)
        for entity in summary.entities:
            logger.info(
                f"{entity.entity_type}: raw={entity.raw} kept={entity.kept} "
                f"written={entity.written} (path: {entity.path or 'not found'})"
            )
        if summary.dry_run:
            logger.info("DRY RUN: No data was written to the database")
        logger.info("=" * 60)
