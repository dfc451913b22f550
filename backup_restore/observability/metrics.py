"""
Prometheus metrics collection for backup-restore

The import runs as a short-lived batch job, so metrics are not served over
HTTP; the CLI writes the registry to a node-exporter textfile instead.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    write_to_textfile,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RECORD METRICS
# =======================

# Records per entity type and stage (raw, kept, written)
records_total = Counter(
    name="backup_import_records_total",
    documentation="Records seen by the import, by entity type and stage",
    labelnames=["entity_type", "stage"],
    registry=REGISTRY,
)

# =======================
# WAREHOUSE METRICS
# =======================

# Upsert batches
batches_total = Counter(
    name="backup_import_batches_total",
    documentation="Upsert batches applied, by entity type and status",
    labelnames=["entity_type", "status"],  # status: success, failure
    registry=REGISTRY,
)

# Upsert batch duration
batch_duration_seconds = Histogram(
    name="backup_import_batch_duration_seconds",
    documentation="Time spent applying one upsert batch in seconds",
    labelnames=["entity_type"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# =======================
# RUN METRICS
# =======================

runs_total = Counter(
    name="backup_import_runs_total",
    documentation="Import runs, by outcome",
    labelnames=["status"],  # status: success, failure
    registry=REGISTRY,
)

archival_failures_total = Counter(
    name="backup_import_archival_failures_total",
    documentation="Runs whose raw payload could not be archived",
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def write_metrics_file(path: str) -> None:
    """
    Write the registry to a textfile-collector file (atomic rename).

    Args:
        path: Target file path, conventionally ending in .prom
    """
    write_to_textfile(path, REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    histogram.labels(**labels).observe(value)


def record_entity_counts(entity_type: str, raw: int, kept: int, written: int) -> None:
    """
    Record the per-entity counts of one run.

    Args:
        entity_type: customers, documents or orders
        raw: Elements found in the backup
        kept: Records with a canonical id
        written: Records upserted
    """
    increment_counter(records_total, raw, entity_type=entity_type, stage="raw")
    increment_counter(records_total, kept, entity_type=entity_type, stage="kept")
    increment_counter(records_total, written, entity_type=entity_type, stage="written")


def record_batch(entity_type: str, success: bool, duration_seconds: float) -> None:
    """
    Record one upsert batch.

    Args:
        entity_type: Entity type written
        success: Whether the batch was applied
        duration_seconds: Time taken by the target store
    """
    status = "success" if success else "failure"
    increment_counter(batches_total, 1, entity_type=entity_type, status=status)
    observe_histogram(batch_duration_seconds, duration_seconds, entity_type=entity_type)


def record_run(success: bool) -> None:
    increment_counter(runs_total, 1, status="success" if success else "failure")
