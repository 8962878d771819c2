"""
Newsletter component.

Broadcast of an issue to confirmed subscribers.
"""

from lettercast.components.newsletter.component import (
    FETCH_FAILED,
    BroadcastWorkflow,
    validate_issue,
)
from lettercast.components.newsletter.models import (
    DeliveryPolicy,
    PublishInput,
    PublishOutput,
)
from lettercast.components.newsletter.ports import ConfirmedSubscriberSourcePort

__all__ = [
    "BroadcastWorkflow",
    "validate_issue",
    "FETCH_FAILED",
    "DeliveryPolicy",
    "PublishInput",
    "PublishOutput",
    "ConfirmedSubscriberSourcePort",
]
