"""
Subscriber Store interfaces.

Protocol-based contract over a transactional relational backend.
Implementations: SQLite (lettercast.adapters.sqlite_db).

Only the store reads or writes the subscriptions and subscription_tokens
tables; workflows hold no persistent state between calls.

Failure contract:
- ConflictError: insert_subscriber with an email that already exists
- StoreError: connectivity, constraint or write failure
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from types import TracebackType
from typing import Protocol
from uuid import UUID

from lettercast.domain.subscriber import (
    ConfirmationToken,
    NewSubscriber,
    Subscriber,
    SubscriberEmail,
    SubscriberParseError,
)


@dataclass(frozen=True)
class ConfirmedSubscriberRow:
    """
    One row of the confirmed-subscriber listing.

    Exactly one of `email` / `error` is set. Stored ids and addresses are
    re-validated on read, so a corrupt row surfaces here instead of
    failing the whole listing. `subscriber_id` stays the raw stored text
    when it is not a valid UUID.
    """

    subscriber_id: UUID | str
    raw_email: str
    email: SubscriberEmail | None = None
    error: SubscriberParseError | None = None

    @property
    def is_valid(self) -> bool:
        return self.email is not None

    @classmethod
    def parse(cls, subscriber_id: UUID | str, raw_email: str) -> ConfirmedSubscriberRow:
        if not isinstance(subscriber_id, UUID):
            try:
                subscriber_id = UUID(subscriber_id)
            except (TypeError, ValueError):
                error = SubscriberParseError(
                    "id", f"{subscriber_id!r} is not a valid subscriber id"
                )
                return cls(subscriber_id=subscriber_id, raw_email=raw_email, error=error)
        try:
            email = SubscriberEmail.parse(raw_email)
        except SubscriberParseError as e:
            return cls(subscriber_id=subscriber_id, raw_email=raw_email, error=e)
        return cls(subscriber_id=subscriber_id, raw_email=raw_email, email=email)


class TransactionPort(Protocol):
    """
    Scoped transactional context returned by begin_transaction().

    Used as a context manager; leaving the block without commit() rolls
    back. commit() and rollback() each take effect at most once.
    """

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def __enter__(self) -> TransactionPort:
        ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        ...


class SubscriberStorePort(Protocol):
    """
    Subscriber repository interface.

    Invariants:
    - Exactly one subscriber row per email
    - A token resolves to at most one subscriber
    - Status only moves pending_confirmation -> confirmed
    """

    def begin_transaction(self) -> TransactionPort:
        """Open a transaction for insert_subscriber/store_token."""
        ...

    def insert_subscriber(self, txn: TransactionPort, new_subscriber: NewSubscriber) -> UUID:
        """Insert a pending subscriber and return its generated id."""
        ...

    def store_token(self, txn: TransactionPort, subscriber_id: UUID, token: str) -> None:
        """Associate a confirmation token with a subscriber."""
        ...

    def find_subscriber_by_token(self, token: str) -> UUID | None:
        """Point lookup; None when the token is unknown."""
        ...

    def confirm_subscriber(self, subscriber_id: UUID) -> None:
        """Mark subscriber confirmed. Idempotent."""
        ...

    def list_confirmed_subscriber_emails(self) -> Iterator[ConfirmedSubscriberRow]:
        """
        Lazily yield every confirmed subscriber.

        No ordering guarantee. Single pass. No database lock may be held
        while the caller handles a row; other requests keep writing.
        """
        ...

    def get_subscriber(self, subscriber_id: UUID) -> Subscriber | None:
        ...

    def get_subscriber_by_email(self, email: str) -> Subscriber | None:
        ...

    def get_tokens(self, subscriber_id: UUID) -> list[ConfirmationToken]:
        """Every confirmation token issued to a subscriber."""
        ...
