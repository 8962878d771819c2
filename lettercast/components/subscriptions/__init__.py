"""
Subscriptions component.

Double opt-in onboarding and token confirmation.
"""

from lettercast.components.subscriptions.component import (
    ConfirmationWorkflow,
    SubscriptionWorkflow,
    build_confirmation_email,
    build_confirmation_url,
    parse_new_subscriber,
)
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
    TOKEN_ALPHABET,
    TOKEN_LENGTH,
    TokenIssuer,
    generate_subscription_token,
)

__all__ = [
    # Workflows
    "SubscriptionWorkflow",
    "ConfirmationWorkflow",
    # Pure functions
    "build_confirmation_url",
    "build_confirmation_email",
    "parse_new_subscriber",
    "generate_subscription_token",
    # Constants
    "CONFIRMATION_PATH",
    "CONFIRMATION_SUBJECT",
    "CONFIRMATION_TOKEN_PARAM",
    "TOKEN_ALPHABET",
    "TOKEN_LENGTH",
    # Input/Output
    "SubscribeInput",
    "SubscribeOutput",
    "ConfirmInput",
    "ConfirmOutput",
    # Ports
    "SubscriptionStorePort",
    "ConfirmationStorePort",
    "TokenIssuer",
]
