"""
SQLite Subscriber Store adapter.

Implements SubscriberStorePort on top of a small thread-safe
connection pool. Designed to be Postgres-compatible (standard SQL,
explicit transactions, no SQLite-only column types).

Connections run in autocommit mode; multi-statement writes go through
SQLiteTransaction, which issues BEGIN IMMEDIATE / COMMIT / ROLLBACK
explicitly so no partial state is ever visible to other requests.
"""

from __future__ import annotations

import logging
import os
import queue
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from types import TracebackType
from typing import Any
from uuid import UUID, uuid4

from lettercast.core.errors import ConflictError, StoreError
from lettercast.core.ports.db import ConfirmedSubscriberRow, TransactionPort
from lettercast.domain.subscriber import (
    ConfirmationToken,
    NewSubscriber,
    Subscriber,
    SubscriberStatus,
)

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


# -----------------------------------------------------------------------------
# Connection pool
# -----------------------------------------------------------------------------


class SQLiteConnectionPool:
    """
    Fixed-size pool of SQLite connections, safe for concurrent checkout.

    Connections are opened lazily and reused. Checkout blocks for at most
    `checkout_timeout` seconds before failing with StoreError.
    """

    def __init__(
        self,
        db_path: str,
        size: int = 5,
        checkout_timeout: float = 5.0,
        busy_timeout: float = 5.0,
    ):
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self.db_path = db_path
        self.size = size
        self.checkout_timeout = checkout_timeout
        self.busy_timeout = busy_timeout
        self._slots: queue.LifoQueue[sqlite3.Connection | None] = queue.LifoQueue(maxsize=size)
        for _ in range(size):
            self._slots.put(None)

    def _connect(self) -> sqlite3.Connection:
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def acquire(self) -> sqlite3.Connection:
        try:
            conn = self._slots.get(timeout=self.checkout_timeout)
        except queue.Empty as e:
            raise StoreError("Timed out waiting for a database connection from the pool") from e

        if conn is not None:
            return conn
        try:
            return self._connect()
        except sqlite3.Error as e:
            self._slots.put(None)
            raise StoreError(f"Failed to open database connection: {e}") from e

    def release(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            # Never hand out a connection with someone else's open transaction
            try:
                conn.rollback()
            except sqlite3.Error:
                logger.warning("Discarding connection that failed to roll back", exc_info=True)
                conn.close()
                self._slots.put(None)
                return
        self._slots.put(conn)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close every idle connection. Checked-out connections are unaffected."""
        drained: list[sqlite3.Connection | None] = []
        while True:
            try:
                drained.append(self._slots.get_nowait())
            except queue.Empty:
                break
        for conn in drained:
            if conn is not None:
                conn.close()
            self._slots.put(None)


# -----------------------------------------------------------------------------
# Transaction
# -----------------------------------------------------------------------------


class SQLiteTransaction:
    """
    Transaction scope bound to one pooled connection.

    The connection is checked out on __enter__ and returned on __exit__.
    Leaving the block without commit() rolls back.
    """

    def __init__(self, pool: SQLiteConnectionPool):
        self._pool = pool
        self._conn: sqlite3.Connection | None = None
        self._finished = False

    def __enter__(self) -> SQLiteTransaction:
        conn = self._pool.acquire()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            self._pool.release(conn)
            raise StoreError(f"Failed to begin transaction: {e}") from e
        self._conn = conn
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            self.rollback()  # no-op after commit
        finally:
            if self._conn is not None:
                self._pool.release(self._conn)
                self._conn = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None or self._finished:
            raise StoreError("Transaction is not active")
        return self._conn

    def commit(self) -> None:
        conn = self.connection
        self._finished = True
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            # release() rolls back whatever COMMIT left open
            raise StoreError(f"Failed to commit transaction: {e}") from e

    def rollback(self) -> None:
        if self._conn is None or self._finished:
            return
        self._finished = True
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.warning("Rollback failed", exc_info=True)


# -----------------------------------------------------------------------------
# Subscriber Store
# -----------------------------------------------------------------------------


class SQLiteSubscriberStore:
    """SQLite implementation of SubscriberStorePort."""

    LISTING_BATCH_SIZE = 100

    def __init__(self, pool: SQLiteConnectionPool):
        self.pool = pool

    def begin_transaction(self) -> SQLiteTransaction:
        return SQLiteTransaction(self.pool)

    def _txn_conn(self, txn: TransactionPort) -> sqlite3.Connection:
        if not isinstance(txn, SQLiteTransaction):
            raise StoreError(f"Unsupported transaction type: {type(txn).__name__}")
        return txn.connection

    def insert_subscriber(self, txn: TransactionPort, new_subscriber: NewSubscriber) -> UUID:
        conn = self._txn_conn(txn)
        subscriber_id = uuid4()
        email = new_subscriber.email.value
        try:
            conn.execute(
                """
                INSERT INTO subscriptions (id, email, name, subscribed_at, status)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(subscriber_id),
                    email,
                    new_subscriber.name.value,
                    datetime.now(UTC).isoformat(),
                    SubscriberStatus.PENDING_CONFIRMATION.value,
                ),
            )
        except sqlite3.IntegrityError as e:
            if "subscriptions.email" in str(e):
                raise ConflictError(email) from e
            raise StoreError(f"Failed to insert subscriber: {e}") from e
        except sqlite3.Error as e:
            raise StoreError(f"Failed to insert subscriber: {e}") from e
        return subscriber_id

    def store_token(self, txn: TransactionPort, subscriber_id: UUID, token: str) -> None:
        conn = self._txn_conn(txn)
        try:
            conn.execute(
                "INSERT INTO subscription_tokens (subscription_token, subscriber_id) VALUES (?, ?)",
                (token, str(subscriber_id)),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to store token for subscriber {subscriber_id}: {e}") from e

    def find_subscriber_by_token(self, token: str) -> UUID | None:
        try:
            with self.pool.connection() as conn:
                row = conn.execute(
                    "SELECT subscriber_id FROM subscription_tokens WHERE subscription_token = ?",
                    (token,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to look up confirmation token: {e}") from e
        return UUID(row["subscriber_id"]) if row else None

    def confirm_subscriber(self, subscriber_id: UUID) -> None:
        try:
            with self.pool.connection() as conn:
                conn.execute(
                    "UPDATE subscriptions SET status = ? WHERE id = ?",
                    (SubscriberStatus.CONFIRMED.value, str(subscriber_id)),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to confirm subscriber {subscriber_id}: {e}") from e

    def list_confirmed_subscriber_emails(self) -> Iterator[ConfirmedSubscriberRow]:
        """
        Yield confirmed subscribers, paged by id.

        Each page is read to completion and its connection returned to the
        pool before any row is yielded, so no statement stays open (and no
        read lock is held) while the caller sends email.
        """
        last_id = ""
        while True:
            rows = self._confirmed_page(last_id)
            if not rows:
                return
            for row in rows:
                yield ConfirmedSubscriberRow.parse(row["id"], row["email"])
            last_id = rows[-1]["id"]

    def _confirmed_page(self, after_id: str) -> list[dict[str, Any]]:
        try:
            with self.pool.connection() as conn:
                rows: list[dict[str, Any]] = conn.execute(
                    """
                    SELECT id, email FROM subscriptions
                    WHERE status = ? AND id > ?
                    ORDER BY id
                    LIMIT ?
                    """,
                    (SubscriberStatus.CONFIRMED.value, after_id, self.LISTING_BATCH_SIZE),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list confirmed subscribers: {e}") from e
        return rows

    def get_subscriber(self, subscriber_id: UUID) -> Subscriber | None:
        return self._get_one("SELECT * FROM subscriptions WHERE id = ?", (str(subscriber_id),))

    def get_subscriber_by_email(self, email: str) -> Subscriber | None:
        return self._get_one("SELECT * FROM subscriptions WHERE email = ?", (email,))

    def _get_one(self, sql: str, params: tuple[Any, ...]) -> Subscriber | None:
        try:
            with self.pool.connection() as conn:
                row = conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read subscriber: {e}") from e
        return self._map_row(row) if row else None

    def get_tokens(self, subscriber_id: UUID) -> list[ConfirmationToken]:
        try:
            with self.pool.connection() as conn:
                rows = conn.execute(
                    "SELECT subscription_token FROM subscription_tokens WHERE subscriber_id = ?",
                    (str(subscriber_id),),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read tokens for subscriber {subscriber_id}: {e}") from e
        return [
            ConfirmationToken(token=row["subscription_token"], subscriber_id=subscriber_id)
            for row in rows
        ]

    def _map_row(self, row: dict[str, Any]) -> Subscriber:
        return Subscriber(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            status=SubscriberStatus(row["status"]),
            subscribed_at=parse_dt(row["subscribed_at"]) or datetime.now(UTC),
        )
