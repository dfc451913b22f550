"""
Integration tests for the PostgreSQL upsert target.

Runs against the schema in docker/init-db.sql inside a testcontainers
PostgreSQL instance.
"""

from decimal import Decimal

import pytest
from psycopg import errors

from backup_restore.core.errors import WriteFailed
from backup_restore.core.normalizers import normalize_records
from backup_restore.warehouse import (
    BatchUpserter,
    DatabaseConnectionPool,
    PostgresUpsertTarget,
    RawBackupArchiver,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def pool(clean_db, postgres_url):
    """Open connection pool against the clean test database"""
    # the service key is passed separately from the URL in production
    pool = DatabaseConnectionPool(postgres_url, password="test_password")
    pool.open()
    yield pool
    pool.close()


def fetch_all(pool, query):
    """Run a SELECT through the pool and return dict rows"""
    with pool.get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query)
            return cur.fetchall()


def test_connection_pool(pool):
    """Test that the pool opens and rows come back as dicts"""
    result = fetch_all(pool, "SELECT 42 AS answer")
    assert result == [{"answer": 42}]


def test_execute_without_open_raises(postgres_url):
    pool = DatabaseConnectionPool(postgres_url)
    with pytest.raises(RuntimeError):
        with pool.get_connection():
            pass


def test_empty_database_url():
    with pytest.raises(ValueError):
        DatabaseConnectionPool("")


def test_upsert_inserts_then_updates(pool):
    upserter = BatchUpserter(PostgresUpsertTarget(pool), batch_size=2)

    first = normalize_records("customers", [
        {"id": "c1", "name": "A"},
        {"id": "c2", "name": "B", "email": "b@example.com"},
        {"id": "c3"},
    ])
    assert upserter.upsert("customers", first).written == 3

    second = normalize_records("customers", [{"id": "c1", "name": "A2"}])
    upserter.upsert("customers", second)

    rows = fetch_all(pool, "SELECT id::text AS id, full_name, email FROM customers ORDER BY full_name")
    assert len(rows) == 3
    names = {row["id"]: row["full_name"] for row in rows}
    assert names[first[0].id] == "A2"
    assert names[first[2].id] == "Unknown"


def test_orders_and_documents(pool):
    upserter = BatchUpserter(PostgresUpsertTarget(pool))
    upserter.upsert("documents", normalize_records("documents", [
        {"id": "d1", "client_id": "c1", "share_token": "t", "status": "Missing",
         "createdAt": "2024-03-01T08:30:00Z"},
    ]))
    upserter.upsert("orders", normalize_records("orders", [
        {"id": "o1", "customer_id": "c1", "total": "12.50", "status": "paid"},
    ]))

    document = fetch_all(pool, "SELECT status, url, created_at FROM documents")[0]
    assert document["status"] == "missing"
    assert document["url"] == "/public/view/t"
    assert document["created_at"].year == 2024

    order = fetch_all(pool, "SELECT total, currency, paid FROM orders")[0]
    assert order["total"] == Decimal("12.50")
    assert order["currency"] == "ILS"
    assert order["paid"] is True


def test_failing_batch_keeps_earlier_batches(pool):
    upserter = BatchUpserter(PostgresUpsertTarget(pool), batch_size=1)
    rows = [
        {"id": "3f2504e0-4f89-41d3-9a0c-0305e82c3301", "full_name": "ok"},
        {"id": "not-a-uuid", "full_name": "bad"},
    ]

    with pytest.raises(WriteFailed) as exc_info:
        upserter.upsert("customers", rows)

    assert exc_info.value.batch_index == 1
    assert isinstance(exc_info.value.cause, errors.InvalidTextRepresentation)
    assert fetch_all(pool, "SELECT count(*) AS n FROM customers")[0]["n"] == 1


def test_archive_raw_payload(pool):
    payload = {"customers": [{"id": "c1"}], "meta": {"version": 7}}
    RawBackupArchiver(PostgresUpsertTarget(pool)).archive("backups/b.json", payload)

    row = fetch_all(pool, "SELECT source_key, payload FROM raw_backups")[0]
    assert row["source_key"] == "backups/b.json"
    assert row["payload"] == payload


def test_order_total_beyond_twelve_integer_digits(pool):
    upserter = BatchUpserter(PostgresUpsertTarget(pool))
    upserter.upsert("orders", normalize_records("orders", [
        {"id": "o-big", "total": 1e13},
        {"id": "o-fraction", "total": "0.125"},
    ]))

    totals = {
        row["id"]: row["total"]
        for row in fetch_all(pool, "SELECT id::text AS id, total FROM orders")
    }
    assert sorted(totals.values()) == [Decimal("0.125"), Decimal("10000000000000")]
