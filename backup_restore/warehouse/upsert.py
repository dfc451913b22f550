"""
Idempotent batched upserts of normalized records.

Implements INSERT ... ON CONFLICT UPDATE for reliable, idempotent writes.
Records are applied in fixed-size batches; the first failing batch stops
the entity type and is reported with its index.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from psycopg import sql
from psycopg.types.json import Jsonb
from pydantic import BaseModel

from backup_restore.core.errors import WriteFailed
from backup_restore.observability import metrics
from backup_restore.observability.logger import get_logger
from backup_restore.utils.validation import sanitize_sql_identifier, validate_batch_size

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000

ENTITY_TABLES: dict[str, str] = {
    "customers": "customers",
    "documents": "documents",
    "orders": "orders",
}


class UpsertTarget(ABC):
    """Relational store capability used by the import."""

    @abstractmethod
    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], conflict_column: str) -> None:
        """
        Insert rows, updating existing rows that collide on conflict_column.

        Raises:
            Exception: Whatever the store reports; the caller wraps it
        """
        pass

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any]) -> None:
        """Insert a single row."""
        pass


def _adapt(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return Jsonb(value)
    return value


class PostgresUpsertTarget(UpsertTarget):
    """
    UpsertTarget writing to PostgreSQL through a connection pool.

    Each upsert() call runs as one transaction.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize PostgreSQL target.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    @staticmethod
    def build_upsert_query(table: str, columns: Sequence[str], conflict_column: str) -> sql.Composed:
        """
        Build INSERT ... ON CONFLICT (conflict_column) DO UPDATE for columns.

        Raises:
            ValidationError: If a table or column name is not a safe identifier
        """
        table = sanitize_sql_identifier(table, "table")
        conflict_column = sanitize_sql_identifier(conflict_column, "conflict_column")
        columns = [sanitize_sql_identifier(column, "column") for column in columns]

        updates = [column for column in columns if column != conflict_column]
        if updates:
            action = sql.SQL("DO UPDATE SET {}").format(
                sql.SQL(", ").join(
                    sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(column))
                    for column in updates
                )
            )
        else:
            action = sql.SQL("DO NOTHING")

        return sql.SQL(
            "INSERT INTO {table} ({columns}) VALUES ({values}) ON CONFLICT ({conflict}) {action}"
        ).format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder(column) for column in columns),
            conflict=sql.Identifier(conflict_column),
            action=action,
        )

    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], conflict_column: str) -> None:
        if not rows:
            return

        columns = list(rows[0].keys())
        query = self.build_upsert_query(table, columns, conflict_column)
        params = [{column: _adapt(row.get(column)) for column in columns} for row in rows]

        self.pool.execute_batch(query, params)

    def insert(self, table: str, row: Mapping[str, Any]) -> None:
        table = sanitize_sql_identifier(table, "table")
        columns = [sanitize_sql_identifier(column, "column") for column in row]

        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder(column) for column in columns),
        )
        self.pool.execute_command(query, {column: _adapt(row[column]) for column in columns})


class UpsertResult(NamedTuple):
    """Outcome of upserting one entity type."""

    written: int
    batches: int


class BatchUpserter:
    """
    Writes records to an UpsertTarget in fixed-size batches.

    Batches are applied in order. No batch is attempted after one fails, and
    batches already applied stay committed.
    """

    def __init__(self, target: UpsertTarget, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Initialize batch upserter.

        Args:
            target: Relational store capability
            batch_size: Records per upsert call
        """
        self.target = target
        self.batch_size = validate_batch_size(batch_size)

    def upsert(
        self,
        entity_type: str,
        records: Sequence[BaseModel | Mapping[str, Any]],
        conflict_key: str = "id",
    ) -> UpsertResult:
        """
        Upsert records of one entity type.

        Args:
            entity_type: customers, documents or orders
            records: Normalized records (models or row mappings)
            conflict_key: Column deciding insert vs update

        Returns:
            UpsertResult with records written and batches applied

        Raises:
            KeyError: If the entity type has no table
            WriteFailed: On the first failing batch
        """
        table = ENTITY_TABLES[entity_type]
        if not records:
            logger.info(f"No {entity_type} to upsert")
            return UpsertResult(written=0, batches=0)

        rows = [
            record.model_dump() if isinstance(record, BaseModel) else dict(record)
            for record in records
        ]

        written = 0
        batches = 0
        for batch_index, start in enumerate(range(0, len(rows), self.batch_size)):
            batch = rows[start:start + self.batch_size]
            started = time.perf_counter()
            try:
                self.target.upsert(table, batch, conflict_key)
            except Exception as e:
                metrics.record_batch(entity_type, False, time.perf_counter() - started)
                logger.error(
                    f"Upsert of {entity_type} failed at batch {batch_index} "
                    f"({len(batch)} records, {written} already written): {e}"
                )
                raise WriteFailed(entity_type, batch_index, e, written=written) from e

            metrics.record_batch(entity_type, True, time.perf_counter() - started)
            written += len(batch)
            batches += 1
            logger.debug(f"Upserted {entity_type} batch {batch_index}: {len(batch)} records")

        logger.info(f"Upserted {written} {entity_type} in {batches} batch(es)")
        return UpsertResult(written=written, batches=batches)
