"""
Email Sender interface.

Protocol-based capability over a transactional email provider:
send one HTML email to one address within a bounded timeout.

Implementation strategies:
1. DevEmailAdapter: logs emails, records them for assertions (dev/test)
2. HttpEmailClient: posts to the provider's REST API (production)

All strategies implement the same EmailPort interface and never raise
for delivery problems; they report them through EmailResult. Retries
are the caller's concern.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter or dry-run


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    recipient: str = ""
    message_id: str | None = None  # Provider's message ID
    error: str | None = None
    sent_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status != EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(
            status=EmailStatus.SENT,
            message_id=message_id,
            recipient=recipient,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def skipped(cls, recipient: str, reason: str = "Dev mode") -> EmailResult:
        return cls(
            status=EmailStatus.SKIPPED,
            recipient=recipient,
            error=reason,
        )

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(
            status=EmailStatus.FAILED,
            recipient=recipient,
            error=error,
        )


class EmailPort(Protocol):
    """
    Email sending interface.

    Implementations:
    - DevEmailAdapter: Logs to console (dev/test)
    - HttpEmailClient: REST API with bounded timeout
    """

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
    ) -> EmailResult:
        """
        Send a transactional email.

        Args:
            recipient: Email address of recipient
            subject: Email subject line
            body_html: HTML body content

        Returns:
            EmailResult with send outcome

        Notes:
            - Must not raise; return a failed result instead
            - A timeout is a failure like any other
        """
        ...
