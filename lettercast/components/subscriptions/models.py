"""
Subscriptions component models.

Input/output types for the subscribe and confirm workflows.
State machine: pending_confirmation -> confirmed (see lettercast.domain.subscriber)
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

CONFIRMATION_PATH = "/subscriptions/confirm"
CONFIRMATION_TOKEN_PARAM = "subscription_token"
CONFIRMATION_SUBJECT = "Welcome!"


# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    """Raw subscription request. Validated inside the workflow."""

    email: str
    name: str
    base_url: str


@dataclass(frozen=True)
class ConfirmInput:
    """Input for confirming a subscription."""

    token: str


# --- Output Models ---


@dataclass(frozen=True)
class SubscribeOutput:
    """Subscriber committed and confirmation email handed to the provider."""

    subscriber_id: UUID
    confirmation_link: str


@dataclass(frozen=True)
class ConfirmOutput:
    subscriber_id: UUID
