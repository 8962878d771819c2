"""
Integration tests for the SQLite subscriber store against a migrated database.
"""

import sqlite3
import threading
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from lettercast.adapters.sqlite_db import SQLiteConnectionPool, SQLiteSubscriberStore
from lettercast.core.errors import ConflictError, StoreError
from lettercast.domain.subscriber import ConfirmationToken, NewSubscriber, SubscriberStatus


def new_subscriber(email: str = "ursula_le_guin@gmail.com", name: str = "le guin"):
    return NewSubscriber.parse(email, name)


def insert_raw(
    db_path: str, email: str, status: str = "confirmed", subscriber_id: str | None = None
) -> str:
    """Bypass validation to plant rows the application would never write."""
    subscriber_id = subscriber_id or str(uuid4())
    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO subscriptions (id, email, name, subscribed_at, status) "
        "VALUES (?, ?, 'Raw', ?, ?)",
        (subscriber_id, email, datetime.now(UTC).isoformat(), status),
    )
    conn.commit()
    conn.close()
    return subscriber_id


def subscribe(store: SQLiteSubscriberStore, email: str, token: str):
    with store.begin_transaction() as txn:
        subscriber_id = store.insert_subscriber(txn, new_subscriber(email=email))
        store.store_token(txn, subscriber_id, token)
        txn.commit()
    return subscriber_id


class TestInsertAndToken:
    def test_committed_subscriber_is_pending(self, store: SQLiteSubscriberStore) -> None:
        subscriber_id = subscribe(store, "a@example.com", "tokenA")

        sub = store.get_subscriber(subscriber_id)
        assert sub is not None
        assert sub.email == "a@example.com"
        assert sub.name == "le guin"
        assert sub.status == SubscriberStatus.PENDING_CONFIRMATION
        assert store.find_subscriber_by_token("tokenA") == subscriber_id

    def test_subscriber_has_exactly_one_token(self, store: SQLiteSubscriberStore) -> None:
        subscriber_id = subscribe(store, "a@example.com", "tokenA")
        subscribe(store, "b@example.com", "tokenB")

        assert store.get_tokens(subscriber_id) == [
            ConfirmationToken(token="tokenA", subscriber_id=subscriber_id)
        ]

    def test_rolled_back_subscriber_has_no_tokens(self, store: SQLiteSubscriberStore) -> None:
        with store.begin_transaction() as txn:
            subscriber_id = store.insert_subscriber(txn, new_subscriber())
            store.store_token(txn, subscriber_id, "tok")

        assert store.get_tokens(subscriber_id) == []

    def test_leaving_block_without_commit_rolls_back(
        self, store: SQLiteSubscriberStore
    ) -> None:
        with store.begin_transaction() as txn:
            subscriber_id = store.insert_subscriber(txn, new_subscriber())
            store.store_token(txn, subscriber_id, "tok")

        assert store.get_subscriber(subscriber_id) is None
        assert store.find_subscriber_by_token("tok") is None

    def test_failure_inside_block_rolls_back(self, store: SQLiteSubscriberStore) -> None:
        with pytest.raises(RuntimeError):
            with store.begin_transaction() as txn:
                store.insert_subscriber(txn, new_subscriber())
                raise RuntimeError("boom")

        assert store.get_subscriber_by_email("ursula_le_guin@gmail.com") is None

    def test_duplicate_email_is_conflict(self, store: SQLiteSubscriberStore) -> None:
        subscribe(store, "a@example.com", "tok1")

        with pytest.raises(ConflictError) as exc_info:
            with store.begin_transaction() as txn:
                store.insert_subscriber(txn, new_subscriber(email="a@example.com"))

        assert exc_info.value.email == "a@example.com"

    def test_token_for_missing_subscriber_is_store_error(
        self, store: SQLiteSubscriberStore
    ) -> None:
        with pytest.raises(StoreError):
            with store.begin_transaction() as txn:
                store.store_token(txn, uuid4(), "orphan")

    def test_duplicate_token_is_store_error(self, store: SQLiteSubscriberStore) -> None:
        subscribe(store, "a@example.com", "same")

        with pytest.raises(StoreError):
            subscribe(store, "b@example.com", "same")

        # The second subscriber was rolled back with its token
        assert store.get_subscriber_by_email("b@example.com") is None

    def test_transaction_is_unusable_after_commit(self, store: SQLiteSubscriberStore) -> None:
        with store.begin_transaction() as txn:
            txn.commit()
            with pytest.raises(StoreError):
                store.insert_subscriber(txn, new_subscriber())


class TestTokenLookup:
    def test_unknown_token(self, store: SQLiteSubscriberStore) -> None:
        assert store.find_subscriber_by_token("missing") is None

    def test_lookup_is_case_sensitive(self, store: SQLiteSubscriberStore) -> None:
        subscribe(store, "a@example.com", "MixedCase")

        assert store.find_subscriber_by_token("mixedcase") is None
        assert store.find_subscriber_by_token("MixedCase") is not None


class TestConfirm:
    def test_confirm_is_idempotent(self, store: SQLiteSubscriberStore) -> None:
        subscriber_id = subscribe(store, "a@example.com", "tok")

        store.confirm_subscriber(subscriber_id)
        store.confirm_subscriber(subscriber_id)

        sub = store.get_subscriber(subscriber_id)
        assert sub is not None
        assert sub.status == SubscriberStatus.CONFIRMED


class TestListConfirmed:
    def test_only_confirmed_are_listed(self, store: SQLiteSubscriberStore) -> None:
        confirmed = subscribe(store, "a@example.com", "t1")
        subscribe(store, "b@example.com", "t2")
        store.confirm_subscriber(confirmed)

        rows = list(store.list_confirmed_subscriber_emails())

        assert [(r.subscriber_id, r.raw_email) for r in rows] == [(confirmed, "a@example.com")]
        assert rows[0].is_valid

    def test_corrupt_email_is_tagged_not_raised(
        self, store: SQLiteSubscriberStore, db_path: str
    ) -> None:
        good = subscribe(store, "a@example.com", "t1")
        store.confirm_subscriber(good)
        bad_id = insert_raw(db_path, "not-an-email")

        rows = {str(r.subscriber_id): r for r in store.list_confirmed_subscriber_emails()}

        assert rows[str(good)].email is not None
        assert rows[bad_id].email is None
        assert rows[bad_id].error is not None
        assert rows[bad_id].raw_email == "not-an-email"

    def test_corrupt_id_is_tagged_not_raised(
        self, store: SQLiteSubscriberStore, db_path: str
    ) -> None:
        insert_raw(db_path, "a@example.com")
        insert_raw(db_path, "b@example.com", subscriber_id="not-a-uuid")

        rows = {r.raw_email: r for r in store.list_confirmed_subscriber_emails()}

        assert rows["a@example.com"].is_valid
        bad = rows["b@example.com"]
        assert not bad.is_valid
        assert bad.subscriber_id == "not-a-uuid"
        assert bad.error is not None
        assert bad.error.field == "id"

    def test_listing_spans_batches(self, store: SQLiteSubscriberStore, db_path: str) -> None:
        store.LISTING_BATCH_SIZE = 3
        emails = {f"user{i}@example.com" for i in range(10)}
        for email in emails:
            insert_raw(db_path, email)

        listed = [r.raw_email for r in store.list_confirmed_subscriber_emails()]

        assert sorted(listed) == sorted(emails)

    def test_writes_commit_while_listing_is_in_progress(self, db_path: str) -> None:
        pool = SQLiteConnectionPool(db_path, size=2, checkout_timeout=0.5, busy_timeout=0.5)
        store = SQLiteSubscriberStore(pool)
        emails = {f"user{i:03}@example.com" for i in range(150)}
        for email in emails:
            insert_raw(db_path, email)

        rows = store.list_confirmed_subscriber_emails()
        first = next(rows)

        # A concurrent request subscribes and confirms mid-broadcast
        new_id = subscribe(store, "late@example.com", "late-token")
        store.confirm_subscriber(new_id)

        listed = {first.raw_email} | {r.raw_email for r in rows}
        assert emails <= listed
        pool.close()

    def test_listing_holds_no_connection_between_rows(self, db_path: str) -> None:
        pool = SQLiteConnectionPool(db_path, size=1, checkout_timeout=0.5)
        store = SQLiteSubscriberStore(pool)
        insert_raw(db_path, "a@example.com")
        insert_raw(db_path, "b@example.com")

        rows = store.list_confirmed_subscriber_emails()
        next(rows)

        # Only one connection in the pool; this would time out if the listing kept it
        assert store.find_subscriber_by_token("x") is None
        assert len(list(rows)) == 1
        pool.close()


class TestConnectionPool:
    def test_checkout_times_out_when_exhausted(self, db_path: str) -> None:
        pool = SQLiteConnectionPool(db_path, size=1, checkout_timeout=0.1)
        conn = pool.acquire()
        try:
            with pytest.raises(StoreError):
                pool.acquire()
        finally:
            pool.release(conn)
            pool.close()

    def test_connections_are_reused(self, db_path: str) -> None:
        pool = SQLiteConnectionPool(db_path, size=1)
        with pool.connection() as first:
            pass
        with pool.connection() as second:
            pass
        assert first is second
        pool.close()

    def test_released_connection_has_no_open_transaction(self, db_path: str) -> None:
        pool = SQLiteConnectionPool(db_path, size=1)
        conn = pool.acquire()
        conn.execute("BEGIN")
        pool.release(conn)

        with pool.connection() as again:
            assert not again.in_transaction
        pool.close()

    def test_invalid_size(self, db_path: str) -> None:
        with pytest.raises(ValueError):
            SQLiteConnectionPool(db_path, size=0)

    def test_concurrent_subscriptions(self, store: SQLiteSubscriberStore) -> None:
        errors: list[BaseException] = []

        def worker(i: int) -> None:
            try:
                subscribe(store, f"user{i}@example.com", f"token{i}")
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        for i in range(8):
            assert store.find_subscriber_by_token(f"token{i}") is not None
