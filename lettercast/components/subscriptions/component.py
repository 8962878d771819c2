"""
Subscriptions component.

Double opt-in onboarding:
- SubscriptionWorkflow: validate, persist subscriber + token atomically,
  then email the confirmation link
- ConfirmationWorkflow: redeem a token, pending -> confirmed

The database commit happens before the confirmation email is sent. A
provider outage therefore never rolls back a stored subscriber; it leaves
them pending, and a later token can still be issued for them.
"""

from __future__ import annotations

import logging

from lettercast.components.subscriptions.models import (
    CONFIRMATION_PATH,
    CONFIRMATION_SUBJECT,
    CONFIRMATION_TOKEN_PARAM,
    ConfirmInput,
    ConfirmOutput,
    SubscribeInput,
    SubscribeOutput,
)
from lettercast.components.subscriptions.ports import (
    ConfirmationStorePort,
    SubscriptionStorePort,
)
from lettercast.components.subscriptions.tokens import (
    TokenIssuer,
    generate_subscription_token,
)
from lettercast.core.errors import (
    SendError,
    StoreError,
    UnexpectedError,
    UnknownTokenError,
    ValidationError,
)
from lettercast.core.ports.email import EmailPort
from lettercast.domain.subscriber import NewSubscriber, SubscriberParseError

logger = logging.getLogger(__name__)


# --- Pure Functions ---


def build_confirmation_url(base_url: str, token: str) -> str:
    """
    Build the confirmation link sent to a new subscriber.

    >>> build_confirmation_url("http://127.0.0.1:8000/", "abc")
    'http://127.0.0.1:8000/subscriptions/confirm?subscription_token=abc'
    """
    base = base_url.rstrip("/")
    return f"{base}{CONFIRMATION_PATH}?{CONFIRMATION_TOKEN_PARAM}={token}"


def build_confirmation_email(confirmation_link: str) -> tuple[str, str]:
    """Return (subject, html_body) for the confirmation email."""
    body = (
        "Welcome to our newsletter!<br />"
        f'Click <a href="{confirmation_link}">here</a> to confirm your subscription.'
    )
    return CONFIRMATION_SUBJECT, body


def parse_new_subscriber(email: str, name: str) -> NewSubscriber:
    try:
        return NewSubscriber.parse(email, name)
    except SubscriberParseError as e:
        raise ValidationError(e.reason, field=e.field) from e


# --- Workflows ---


class SubscriptionWorkflow:
    """Onboards a pending subscriber and sends the confirmation link."""

    def __init__(
        self,
        store: SubscriptionStorePort,
        email_sender: EmailPort,
        token_issuer: TokenIssuer = generate_subscription_token,
    ):
        self.store = store
        self.email_sender = email_sender
        self.token_issuer = token_issuer

    def subscribe(self, inp: SubscribeInput) -> SubscribeOutput:
        """
        Raises:
            ValidationError: malformed name or email; nothing was written
            UnexpectedError: persistence failed (rolled back) or the
                confirmation email could not be sent (subscriber stays pending)
        """
        new_subscriber = parse_new_subscriber(inp.email, inp.name)

        step = "Failed to acquire a database connection from the pool"
        try:
            with self.store.begin_transaction() as txn:
                step = "Failed to insert new subscriber in the database"
                subscriber_id = self.store.insert_subscriber(txn, new_subscriber)

                step = "Failed to store the confirmation token for a new subscriber"
                token = self.token_issuer()
                self.store.store_token(txn, subscriber_id, token)

                step = "Failed to commit SQL transaction to store a new subscriber"
                txn.commit()
        except StoreError as e:
            raise UnexpectedError(step) from e

        logger.info("Stored new subscriber %s, pending confirmation", subscriber_id)

        confirmation_link = build_confirmation_url(inp.base_url, token)
        subject, body = build_confirmation_email(confirmation_link)
        recipient = new_subscriber.email.value
        result = self.email_sender.send_email(recipient, subject, body)
        if not result.ok:
            raise UnexpectedError("Failed to send a confirmation email") from SendError(
                recipient, result.error or "unknown error"
            )

        return SubscribeOutput(subscriber_id=subscriber_id, confirmation_link=confirmation_link)


class ConfirmationWorkflow:
    """Redeems a confirmation token. Re-confirming is a silent success."""

    def __init__(self, store: ConfirmationStorePort):
        self.store = store

    def confirm(self, inp: ConfirmInput) -> ConfirmOutput:
        if not inp.token:
            raise UnknownTokenError()

        try:
            subscriber_id = self.store.find_subscriber_by_token(inp.token)
        except StoreError as e:
            raise UnexpectedError(
                "Failed to retrieve the subscriber id associated with the provided token"
            ) from e

        if subscriber_id is None:
            raise UnknownTokenError()

        try:
            self.store.confirm_subscriber(subscriber_id)
        except StoreError as e:
            raise UnexpectedError(f"Failed to mark subscriber {subscriber_id} as confirmed") from e

        logger.info("Subscriber %s confirmed", subscriber_id)
        return ConfirmOutput(subscriber_id=subscriber_id)
