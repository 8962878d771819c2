"""
Newsletter component.

Broadcasts one issue to every confirmed subscriber, sequentially and in
the order the store yields them. Pending subscribers are never listed,
so they are never sent to.

Failure handling:
- Corrupt stored email: skip the row, log a warning, continue
- Failed send: governed by DeliveryPolicy (FAIL_FAST aborts by default)
- Listing failure: UnexpectedError, nothing further is sent
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from lettercast.components.newsletter.models import (
    DeliveryPolicy,
    PublishInput,
    PublishOutput,
)
from lettercast.components.newsletter.ports import ConfirmedSubscriberSourcePort
from lettercast.core.errors import SendError, StoreError, UnexpectedError, ValidationError
from lettercast.core.ports.db import ConfirmedSubscriberRow
from lettercast.core.ports.email import EmailPort

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch confirmed subscribers"


def validate_issue(inp: PublishInput) -> None:
    if not inp.title or not inp.title.strip():
        raise ValidationError("Newsletter title is required", field="title")
    if not inp.html_content or not inp.html_content.strip():
        raise ValidationError("Newsletter content is required", field="content")


class BroadcastWorkflow:
    """Fans a newsletter issue out to confirmed subscribers."""

    def __init__(
        self,
        store: ConfirmedSubscriberSourcePort,
        email_sender: EmailPort,
        policy: DeliveryPolicy = DeliveryPolicy.FAIL_FAST,
    ):
        self.store = store
        self.email_sender = email_sender
        self.policy = policy

    def publish(self, inp: PublishInput) -> PublishOutput:
        """
        Raises:
            ValidationError: empty title or content
            UnexpectedError: listing failed, or (FAIL_FAST) a send failed;
                the context names the failing recipient
        """
        validate_issue(inp)
        output = PublishOutput()

        try:
            rows = self.store.list_confirmed_subscriber_emails()
        except StoreError as e:
            raise UnexpectedError(FETCH_FAILED) from e

        try:
            for row in self._fetch(rows):
                if row.email is None:
                    output.skipped += 1
                    logger.warning(
                        "Skipping a confirmed subscriber. Their stored contact details "
                        "are invalid: subscriber_id=%s error=%s",
                        row.subscriber_id,
                        row.error,
                    )
                    continue
                self._deliver(row.email.value, inp, output)
        finally:
            close = getattr(rows, "close", None)
            if close is not None:
                close()

        logger.info(
            "Newsletter %r delivered to %d subscribers (%d failed, %d skipped)",
            inp.title,
            len(output.delivered),
            len(output.failed),
            output.skipped,
        )
        return output

    def _fetch(self, rows: Iterator[ConfirmedSubscriberRow]) -> Iterator[ConfirmedSubscriberRow]:
        iterator = iter(rows)
        while True:
            try:
                row = next(iterator)
            except StopIteration:
                return
            except StoreError as e:
                raise UnexpectedError(FETCH_FAILED) from e
            yield row

    def _deliver(self, recipient: str, inp: PublishInput, output: PublishOutput) -> None:
        result = self.email_sender.send_email(recipient, inp.title, inp.html_content)
        if result.ok:
            output.delivered.append(recipient)
            return

        error = SendError(recipient, result.error or "unknown error")
        if self.policy is DeliveryPolicy.FAIL_FAST:
            raise UnexpectedError(f"Failed to send newsletter issue to {recipient}") from error

        output.failed.append(recipient)
        logger.warning("Newsletter delivery failed, continuing: %s", error)
