"""Storage of daily usage counters.

Usage is stored in the following table:

```
     Column      |            Type             | Nullable |
-----------------+-----------------------------+----------+
 user_id         | text                        | not null |
 model_id        | text                        | not null |
 usage_date      | text                        | not null |
 count           | int                         | not null |
 updated_at      | timestamp with time zone    |          |
Indexes:
    "ai_usage_pkey" PRIMARY KEY, btree (user_id, model_id, usage_date)
    "ai_usage_dates" btree (usage_date)
```

`usage_date` is the ISO calendar date in the quota timezone. Rows are
created by the first increment of the day and are never deleted.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Optional

import psycopg2

from log import get_logger
from models.config import SQLiteDatabaseConfiguration, PostgreSQLDatabaseConfiguration
from quota.connect_pg import connect_pg
from quota.connect_sqlite import connect_sqlite
from quota.sql import (
    CREATE_USAGE_TABLE,
    CREATE_USAGE_DATE_INDEX,
    INCREMENT_USAGE_PG,
    INCREMENT_USAGE_SQLITE,
    SELECT_USAGE_PG,
    SELECT_USAGE_SQLITE,
    SELECT_USER_USAGE_PG,
    SELECT_USER_USAGE_SQLITE,
)
from utils.connection_decorator import connection

logger = get_logger(__name__)


class UsageStore(ABC):
    """Abstract class that is parent for all usage store implementations."""

    @abstractmethod
    def get_count(self, user_id: str, model_id: str, usage_date: date) -> int:
        """Return number of requests made by user to model on given day."""

    @abstractmethod
    def increment(self, user_id: str, model_id: str, usage_date: date) -> None:
        """Atomically add one request, creating the counter when missing."""

    @abstractmethod
    def list_for_user(self, user_id: str, usage_date: date) -> dict[str, int]:
        """Return counters of all models used by user on given day."""


class SQLUsageStore(UsageStore):
    """Usage store backed by SQLite or PostgreSQL connection."""

    def __init__(
        self,
        sqlite_config: Optional[SQLiteDatabaseConfiguration] = None,
        postgres_config: Optional[PostgreSQLDatabaseConfiguration] = None,
    ) -> None:
        """Initialize store, the connection is opened lazily."""
        if (sqlite_config is None) == (postgres_config is None):
            raise ValueError("Exactly one usage storage configuration is required")
        self.sqlite_connection_config = sqlite_config
        self.postgres_connection_config = postgres_config
        self.connection: Any = None
        # one connection is shared by all worker threads
        self._lock = threading.RLock()

    # pylint: disable=W0201
    def connect(self) -> None:
        """Open connection to database, the previous one is closed first."""
        with self._lock:
            # another worker thread may have reconnected meanwhile
            if self.connected():
                return
            self._close_connection()
            logger.info("Initializing connection to usage database")
            if self.postgres_connection_config is not None:
                self.connection = connect_pg(self.postgres_connection_config)
            if self.sqlite_connection_config is not None:
                self.connection = connect_sqlite(self.sqlite_connection_config)

            try:
                self._initialize_tables()
            except Exception as e:
                self._close_connection()
                logger.exception("Error initializing usage database:\n%s", e)
                raise

    def _close_connection(self) -> None:
        if self.connection is None:
            return
        try:
            self.connection.close()
        except (psycopg2.Error, sqlite3.Error) as e:
            logger.warning("Unable to close usage database connection: %s", e)
        self.connection = None

    def connected(self) -> bool:
        """Check if connection to storage is alive."""
        if self.connection is None:
            logger.warning("Not connected, need to reconnect later")
            return False
        cursor = None
        try:
            with self._lock:
                cursor = self.connection.cursor()
                cursor.execute("SELECT 1")
            return True
        except (psycopg2.Error, sqlite3.Error) as e:
            logger.error("Disconnected from storage: %s", e)
            return False
        finally:
            if cursor is not None:
                try:
                    cursor.close()
                except Exception:  # pylint: disable=broad-exception-caught
                    logger.warning("Unable to close cursor")

    def _initialize_tables(self) -> None:
        """Initialize tables and indexes."""
        with self._lock:
            cursor = self.connection.cursor()
            config = self.postgres_connection_config
            if config is not None and config.namespace not in (None, "public"):
                cursor.execute(f'CREATE SCHEMA IF NOT EXISTS "{config.namespace}"')
            cursor.execute(CREATE_USAGE_TABLE)
            cursor.execute(CREATE_USAGE_DATE_INDEX)
            cursor.close()
            self.connection.commit()

    def _statement(self, pg_statement: str, sqlite_statement: str) -> str:
        if self.postgres_connection_config is not None:
            return pg_statement
        return sqlite_statement

    @connection
    def get_count(self, user_id: str, model_id: str, usage_date: date) -> int:
        """Return number of requests made by user to model on given day."""
        statement = self._statement(SELECT_USAGE_PG, SELECT_USAGE_SQLITE)
        with self._lock:
            cursor = self.connection.cursor()
            try:
                cursor.execute(statement, (user_id, model_id, usage_date.isoformat()))
                value = cursor.fetchone()
            finally:
                cursor.close()
        if value is None:
            return 0
        return value[0]

    @connection
    def increment(self, user_id: str, model_id: str, usage_date: date) -> None:
        """Atomically add one request, creating the counter when missing."""
        statement = self._statement(INCREMENT_USAGE_PG, INCREMENT_USAGE_SQLITE)
        updated_at = datetime.now(timezone.utc).isoformat()
        with self._lock:
            cursor = self.connection.cursor()
            try:
                cursor.execute(
                    statement,
                    (user_id, model_id, usage_date.isoformat(), updated_at),
                )
                self.connection.commit()
            finally:
                cursor.close()

    @connection
    def list_for_user(self, user_id: str, usage_date: date) -> dict[str, int]:
        """Return counters of all models used by user on given day."""
        statement = self._statement(SELECT_USER_USAGE_PG, SELECT_USER_USAGE_SQLITE)
        with self._lock:
            cursor = self.connection.cursor()
            try:
                cursor.execute(statement, (user_id, usage_date.isoformat()))
                rows = cursor.fetchall()
            finally:
                cursor.close()
        return {model_id: count for model_id, count in rows}
