"""SQLite connection pool shared by the identity and curriculum stores."""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Full, Queue
from typing import Generator

logger = logging.getLogger(__name__)


class SQLiteConnectionPool:
    """Thread-safe SQLite connection pool.

    Connections are created lazily up to ``max_connections``. Request
    handlers run on a threadpool, so connections are opened with
    ``check_same_thread=False`` and each one is handed to a single borrower
    at a time.
    """

    def __init__(self, database: str, max_connections: int = 5, timeout: float = 5.0):
        self.database = database
        self.max_connections = max_connections
        self.timeout = timeout
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=max_connections)
        self._lock = threading.Lock()
        self._created_connections = 0

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database, timeout=self.timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Borrow a connection, creating one if the pool is not yet full."""
        connection = None
        try:
            connection = self._pool.get(block=False)
        except Empty:
            with self._lock:
                if self._created_connections < self.max_connections:
                    connection = self._create_connection()
                    self._created_connections += 1
                    logger.debug("Opened sqlite connection %d/%d to %s",
                                 self._created_connections, self.max_connections, self.database)
            if connection is None:
                try:
                    connection = self._pool.get(block=True, timeout=self.timeout)
                except Empty:
                    raise sqlite3.OperationalError(
                        f"connection pool exhausted after waiting {self.timeout}s"
                    ) from None

        try:
            yield connection
        finally:
            self._release(connection)

    def _release(self, connection: sqlite3.Connection) -> None:
        try:
            # Uncommitted work never leaks to the next borrower.
            connection.rollback()
            self._pool.put(connection, block=False)
        except (sqlite3.Error, Full) as exc:
            logger.error("Dropping sqlite connection instead of returning it to the pool: %s", exc)
            try:
                connection.close()
            except sqlite3.Error:
                logger.debug("Connection close failed", exc_info=True)
            with self._lock:
                self._created_connections -= 1

    def close_all(self) -> None:
        """Close every idle connection held by the pool."""
        while True:
            try:
                connection = self._pool.get(block=False)
            except Empty:
                break
            connection.close()
            with self._lock:
                self._created_connections -= 1
