"""
Subscriptions component ports.

Narrow views of the Subscriber Store used by each workflow.
SQLiteSubscriberStore satisfies both.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lettercast.core.ports.db import TransactionPort
from lettercast.domain.subscriber import NewSubscriber


class SubscriptionStorePort(Protocol):
    """Writes needed to onboard a subscriber atomically."""

    def begin_transaction(self) -> TransactionPort:
        ...

    def insert_subscriber(self, txn: TransactionPort, new_subscriber: NewSubscriber) -> UUID:
        ...

    def store_token(self, txn: TransactionPort, subscriber_id: UUID, token: str) -> None:
        ...


class ConfirmationStorePort(Protocol):
    """Token lookup and the pending -> confirmed update."""

    def find_subscriber_by_token(self, token: str) -> UUID | None:
        ...

    def confirm_subscriber(self, subscriber_id: UUID) -> None:
        ...
