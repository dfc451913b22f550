"""
PostgreSQL connection pool management using psycopg3

This module provides a connection pool for the import job's writes, built
from the database URL and service credential in ImportSettings.
"""
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from backup_restore.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    PostgreSQL connection pool manager using psycopg3

    The import is sequential, so one connection is enough; the pool still
    handles reconnects and connection lifecycle.
    """

    def __init__(
        self,
        database_url: str,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 1,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize database connection pool

        Args:
            database_url: libpq connection URL or key/value string
            password: Database credential; overrides any password in the URL
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Connection timeout in seconds

        Raises:
            ValueError: If database_url is empty
        """
        if not database_url:
            raise ValueError("Database URL must be provided.")

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        params = {"connect_timeout": int(self.timeout)}
        if password:
            params["password"] = password
        self.conninfo = make_conninfo(database_url, **params)

        self._pool: ConnectionPool | None = None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the connection pool with retry logic.

        Args:
            max_retries: Maximum number of connection attempts
            retry_delay: Delay between retries in seconds

        Raises:
            OperationalError: If connection fails after all retries
        """
        if self._pool is not None:
            return

        self._pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},  # Return rows as dictionaries
            open=False,
        )

        for attempt in range(1, max_retries + 1):
            try:
                self._pool.open(wait=True, timeout=self.timeout)
                return
            except OperationalError as e:
                if attempt < max_retries:
                    logger.warning(f"Database connection attempt {attempt} failed: {e}")
                    time.sleep(retry_delay)
                else:
                    self._pool.close()
                    self._pool = None
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e

    def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Get a connection from the pool

        Yields:
            psycopg.Connection: Database connection

        Raises:
            RuntimeError: If pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    def execute_command(self, command, params: tuple | dict | None = None) -> int:
        """
        Execute an INSERT/UPDATE/DELETE command

        Args:
            command: SQL command
            params: Command parameters (optional)

        Returns:
            Number of rows affected
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(command, params)
                rowcount = cur.rowcount
            conn.commit()
            return rowcount

    def execute_batch(self, command, params_list: list) -> None:
        """
        Execute a command for multiple parameter sets in one transaction

        Args:
            command: SQL command
            params_list: List of parameter tuples or dicts
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(command, params_list)
            conn.commit()
