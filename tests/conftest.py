"""
Pytest configuration and fixtures for backup-restore tests

This module provides shared fixtures for unit, integration, and E2E tests:
in-memory object store and upsert target fakes, and a PostgreSQL container
for tests against the real warehouse schema.
"""
import gzip
import json
import os
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Generator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from backup_restore.core.models import BackupObject
from backup_restore.storage.object_store import ObjectPage, ObjectStore
from backup_restore.warehouse.upsert import UpsertTarget


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that exercise several components together"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the full import"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# IN-MEMORY FAKES
# =======================

class FakeObjectStore(ObjectStore):
    """
    ObjectStore holding objects in memory.

    Listing follows insertion order and is paged by page_size, with the
    offset of the next page as continuation token.
    """

    def __init__(self, bucket: str = "test-bucket", page_size: int = 1000):
        self.bucket = bucket
        self.page_size = page_size
        self.objects: dict[str, tuple[bytes, datetime | None]] = {}
        self.list_calls: list[tuple[str, str | None]] = []
        self.fetched: list[str] = []

    def put(self, key: str, body: bytes, last_modified: datetime | None = None) -> None:
        self.objects[key] = (body, last_modified)

    def put_json(
        self,
        key: str,
        document: Any,
        last_modified: datetime | None = None,
    ) -> None:
        body = json.dumps(document).encode("utf-8")
        if key.endswith(".gz"):
            body = gzip.compress(body)
        self.put(key, body, last_modified)

    def list_page(self, prefix: str, continuation_token: str | None = None) -> ObjectPage:
        self.list_calls.append((prefix, continuation_token))
        matching = [
            BackupObject(key=key, last_modified=modified, size=len(body))
            for key, (body, modified) in self.objects.items()
            if key.startswith(prefix)
        ]
        offset = int(continuation_token or 0)
        end = offset + self.page_size
        next_token = str(end) if end < len(matching) else None
        return ObjectPage(objects=matching[offset:end], next_token=next_token)

    def iter_chunks(self, key: str, chunk_size: int):
        self.fetched.append(key)
        body = self.objects[key][0]
        for start in range(0, len(body), chunk_size):
            yield body[start:start + chunk_size]


class FakeUpsertTarget(UpsertTarget):
    """
    UpsertTarget keeping tables as dicts keyed by the conflict column.

    Set fail_on_call to the zero-based index of an upsert() call that should
    raise, or fail_inserts to make insert() raise.
    """

    def __init__(self):
        self.tables: dict[str, dict[Any, dict]] = defaultdict(dict)
        self.calls: list[tuple[str, int]] = []
        self.inserts: list[tuple[str, dict]] = []
        self.fail_on_call: int | None = None
        self.fail_inserts = False

    def upsert(self, table, rows, conflict_column) -> None:
        call_index = len(self.calls)
        self.calls.append((table, len(rows)))
        if self.fail_on_call == call_index:
            raise RuntimeError(f"simulated failure on call {call_index}")
        for row in rows:
            self.tables[table][row[conflict_column]] = dict(row)

    def insert(self, table, row) -> None:
        if self.fail_inserts:
            raise RuntimeError("simulated insert failure")
        self.inserts.append((table, dict(row)))


@pytest.fixture(scope="function")
def object_store() -> FakeObjectStore:
    """Empty in-memory object store"""
    return FakeObjectStore()


@pytest.fixture(scope="function")
def upsert_target() -> FakeUpsertTarget:
    """Empty in-memory upsert target"""
    return FakeUpsertTarget()


@pytest.fixture(scope="function")
def utc():
    """Factory for timezone-aware timestamps"""
    def _utc(*args) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)
    return _utc


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="function")
def import_env() -> dict[str, str]:
    """Minimal environment accepted by ImportSettings.from_env"""
    return {
        "AWS_REGION": "eu-north-1",
        "S3_BUCKET": "app-backups",
        "DATABASE_URL": "postgresql://importer@localhost:5432/app",
        "DATABASE_SERVICE_KEY": "service-key",
    }


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Skips when Docker is not available.

    Yields:
        PostgresContainer instance with initialized schema
    """
    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_importer",
        password="test_password",
        dbname="test_backups",
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")

    try:
        init_sql_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "docker",
            "init-db.sql"
        )
        with open(init_sql_path, 'r') as f:
            init_sql = f.read()

        with psycopg.connect(_container_url(container)) as conn:
            with conn.cursor() as cur:
                cur.execute(init_sql)
            conn.commit()

        yield container
    finally:
        container.stop()


def _container_url(container: PostgresContainer) -> str:
    host = container.get_container_host_ip()
    port = container.get_exposed_port(5432)
    return f"postgresql://test_importer:test_password@{host}:{port}/test_backups"


@pytest.fixture(scope="function")
def postgres_url(postgres_container) -> str:
    """Connection URL of the test database (password included)"""
    return _container_url(postgres_container)


@pytest.fixture(scope="function")
def clean_db(postgres_url) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a clean database by truncating all tables before each test

    Yields:
        psycopg Connection object with clean database
    """
    with psycopg.connect(postgres_url) as conn:
        with conn.cursor() as cur:
            cur.execute("TRUNCATE TABLE customers, documents, orders, raw_backups")
        conn.commit()
        yield conn
        conn.rollback()
