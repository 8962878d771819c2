# lettercast: ports (Protocol interfaces)
# Abstract interfaces for adapters; no implementations here

from lettercast.core.ports.db import (
    ConfirmedSubscriberRow,
    SubscriberStorePort,
    TransactionPort,
)
from lettercast.core.ports.email import (
    EmailPort,
    EmailResult,
    EmailStatus,
)

__all__ = [
    # Store
    "ConfirmedSubscriberRow",
    "SubscriberStorePort",
    "TransactionPort",
    # Email
    "EmailPort",
    "EmailResult",
    "EmailStatus",
]
