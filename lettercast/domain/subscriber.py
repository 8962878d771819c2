"""
Subscriber domain types.

Value objects are parsed once at the boundary and trusted afterwards:
holding a SubscriberEmail means the address already passed validation.

State machine (Subscriber): pending_confirmation -> confirmed
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Validation constants ---

# RFC 5322 simplified
EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


class SubscriberParseError(ValueError):
    """Raw input could not be turned into a subscriber value object."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(reason)


# --- Value objects ---


@dataclass(frozen=True)
class SubscriberName:
    """A display name that is non-empty, bounded and free of markup characters."""

    value: str

    @classmethod
    def parse(cls, raw: str | None) -> SubscriberName:
        name = (raw or "").strip()
        if not name:
            raise SubscriberParseError("name", "Subscriber name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise SubscriberParseError(
                "name", f"Subscriber name is longer than {MAX_NAME_LENGTH} characters"
            )
        if any(ch in FORBIDDEN_NAME_CHARACTERS for ch in name):
            raise SubscriberParseError(
                "name", f"{name!r} is not a valid subscriber name"
            )
        return cls(name)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SubscriberEmail:
    """A syntactically valid email address."""

    value: str

    @classmethod
    def parse(cls, raw: str | None) -> SubscriberEmail:
        email = (raw or "").strip()
        if not email:
            raise SubscriberParseError("email", "Email address is required")
        if len(email) > MAX_EMAIL_LENGTH:
            raise SubscriberParseError("email", "Email address is too long")
        if not EMAIL_REGEX.match(email):
            raise SubscriberParseError(
                "email", f"{email!r} is not a valid subscriber email"
            )
        return cls(email)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NewSubscriber:
    """Validated input for creating a subscriber."""

    email: SubscriberEmail
    name: SubscriberName

    @classmethod
    def parse(cls, raw_email: str | None, raw_name: str | None) -> NewSubscriber:
        name = SubscriberName.parse(raw_name)
        email = SubscriberEmail.parse(raw_email)
        return cls(email=email, name=name)


# --- State machine ---


class SubscriberStatus(Enum):
    """Subscription status. Only moves forward."""

    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


VALID_TRANSITIONS: dict[SubscriberStatus, set[SubscriberStatus]] = {
    SubscriberStatus.PENDING_CONFIRMATION: {SubscriberStatus.CONFIRMED},
    SubscriberStatus.CONFIRMED: set(),  # Terminal state
}


def can_transition(from_status: SubscriberStatus, to_status: SubscriberStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


# --- Entities ---


class Subscriber(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    name: str
    status: SubscriberStatus = SubscriberStatus.PENDING_CONFIRMATION
    subscribed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ConfirmationToken(BaseModel):
    token: str
    subscriber_id: UUID
