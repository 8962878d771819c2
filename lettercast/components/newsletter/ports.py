"""
Newsletter component ports.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from lettercast.core.ports.db import ConfirmedSubscriberRow


class ConfirmedSubscriberSourcePort(Protocol):
    """Read side of the Subscriber Store used for broadcasts."""

    def list_confirmed_subscriber_emails(self) -> Iterator[ConfirmedSubscriberRow]:
        """Lazy, single-pass listing; corrupt rows carry their parse error."""
        ...
