"""
Command-line interface for backup imports.

Usage:
    backup-restore run [--key <key>] [--prefix <prefix>] [options]
    backup-restore latest [--prefix <prefix>]
"""

import argparse
import sys

from backup_restore.batch.pipeline import BackupImportPipeline
from backup_restore.config import ImportSettings
from backup_restore.core.errors import BackupImportError, ConfigurationMissing, WriteFailed
from backup_restore.core.shapes import ShapeCatalog
from backup_restore.observability import metrics
from backup_restore.observability.logger import configure_logging, get_logger
from backup_restore.storage import ObjectLocator, PayloadReader, S3ObjectStore, create_s3_client
from backup_restore.utils.validation import ValidationError, validate_batch_size
from backup_restore.warehouse import (
    BatchUpserter,
    DatabaseConnectionPool,
    PostgresUpsertTarget,
    RawBackupArchiver,
)


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2


def load_settings(args) -> ImportSettings:
    """
    Collect settings from the environment and apply command-line overrides.

    Raises:
        ConfigurationMissing: If required configuration is absent or invalid
    """
    settings = ImportSettings.from_env(env_file=getattr(args, "env_file", None))

    overrides = {}
    if getattr(args, "prefix", None) is not None:
        overrides["s3_prefix"] = args.prefix
    if getattr(args, "batch_size", None) is not None:
        try:
            overrides["batch_size"] = validate_batch_size(args.batch_size)
        except ValidationError as e:
            raise ConfigurationMissing(["--batch-size"], f"--batch-size is invalid: {e}") from e
    if getattr(args, "no_archive", False):
        overrides["archive_raw"] = False

    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level, settings.log_format)
    return settings


def create_locator(settings: ImportSettings) -> ObjectLocator:
    """Build the storage side: S3 client, object store and locator."""
    client = create_s3_client(
        region=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        session_token=settings.aws_session_token,
    )
    store = S3ObjectStore(client, settings.s3_bucket)
    return ObjectLocator(store, prefix=settings.s3_prefix, debug_list=settings.debug_list)


def build_pipeline(
    settings: ImportSettings,
    locator: ObjectLocator,
    pool: DatabaseConnectionPool,
    shapes: ShapeCatalog | None = None,
    dry_run: bool = False,
) -> BackupImportPipeline:
    """
    Wire the import pipeline from settings.

    Args:
        settings: Import settings
        locator: Backup locator
        pool: Open database connection pool
        shapes: Candidate paths per entity type
        dry_run: Normalize and count without writing

    Returns:
        BackupImportPipeline
    """
    target = PostgresUpsertTarget(pool)
    archiver = RawBackupArchiver(target) if settings.archive_raw else None

    return BackupImportPipeline(
        locator=locator,
        reader=PayloadReader(locator.store),
        upserter=BatchUpserter(target, batch_size=settings.batch_size),
        archiver=archiver,
        shapes=shapes,
        normalizer_settings=settings.normalizer_settings(),
        dry_run=dry_run,
        debug_summary=settings.debug_summary,
    )


def run_command(args) -> int:
    """
    Execute a full import.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code
    """
    try:
        settings = load_settings(args)
        shapes = ShapeCatalog.from_yaml(args.shapes_file) if args.shapes_file else None
    except ConfigurationMissing as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid shapes file: {e}")
        return EXIT_CONFIGURATION

    logger.info(f"Starting backup import from s3://{settings.s3_bucket}/{settings.s3_prefix}")
    if args.dry_run:
        logger.info("DRY RUN MODE: No data will be written to database")

    pool = DatabaseConnectionPool(settings.database_url, settings.database_service_key)
    try:
        locator = create_locator(settings)

        # Dry runs never touch the database
        if not args.dry_run:
            logger.info("Initializing database connection...")
            pool.open()

        pipeline = build_pipeline(settings, locator, pool, shapes=shapes, dry_run=args.dry_run)
        summary = pipeline.run(key=args.key)

    except WriteFailed as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        if e.summary is not None:
            logger.error(f"Partial summary: {e.summary.model_dump_json()}")
        return EXIT_FAILURE
    except BackupImportError as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Error during backup import: {e}", exc_info=True)
        return EXIT_FAILURE
    finally:
        pool.close()
        if args.metrics_file:
            metrics.write_metrics_file(args.metrics_file)

    print(summary.model_dump_json(indent=2))
    return EXIT_OK


def latest_command(args) -> int:
    """
    Print the key of the newest backup.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code
    """
    try:
        settings = load_settings(args)
    except ConfigurationMissing as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION

    try:
        key = create_locator(settings).latest_key()
    except Exception as e:
        logger.error(f"Error locating latest backup: {e}", exc_info=True)
        return EXIT_FAILURE

    print(key)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backup-restore",
        description="Import the latest application backup into PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import the newest backup under S3_PREFIX
  backup-restore run

  # Import a specific object without archiving the raw payload
  backup-restore run --key backups/2024-05-01.json.gz --no-archive

  # Normalize and count only
  backup-restore run --dry-run

  # Show which backup would be imported
  backup-restore latest --prefix backups/
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Import a backup")
    run_parser.add_argument(
        "--key",
        help="Storage key to import (default: latest backup under the prefix)"
    )
    run_parser.add_argument(
        "--prefix",
        help="Key prefix (overrides S3_PREFIX)"
    )
    run_parser.add_argument(
        "--batch-size",
        type=int,
        help="Records per upsert batch (overrides IMPORT_BATCH_SIZE)"
    )
    run_parser.add_argument(
        "--no-archive",
        action="store_true",
        help="Skip archiving the raw payload"
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Normalize and count without writing to database"
    )
    run_parser.add_argument(
        "--env-file",
        help="Path to a .env file with configuration"
    )
    run_parser.add_argument(
        "--shapes-file",
        help="Path to a YAML file with additional entity paths"
    )
    run_parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics to this textfile when done"
    )

    # Latest command
    latest_parser = subparsers.add_parser("latest", help="Print the newest backup key")
    latest_parser.add_argument(
        "--prefix",
        help="Key prefix (overrides S3_PREFIX)"
    )
    latest_parser.add_argument(
        "--env-file",
        help="Path to a .env file with configuration"
    )

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    if args.command == "run":
        sys.exit(run_command(args))
    elif args.command == "latest":
        sys.exit(latest_command(args))


if __name__ == "__main__":
    main()
