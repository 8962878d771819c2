"""
Error taxonomy shared by workflows, ports and the HTTP shell.

Client-attributable:
- ValidationError: malformed input, never retried
- UnknownTokenError: no matching confirmation record

Server-side:
- ConflictError: duplicate email on insert
- StoreError: persistence connectivity or constraint failure
- SendError: email provider failure or timeout
- UnexpectedError: wraps any of the above with the step that failed
"""

from __future__ import annotations


class LettercastError(Exception):
    """Base error."""

    pass


class ValidationError(LettercastError):
    """Input failed validation."""

    def __init__(self, reason: str, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(reason)


class UnknownTokenError(LettercastError):
    """Confirmation token does not resolve to a subscriber."""

    def __init__(self) -> None:
        super().__init__("Unknown or missing confirmation token")


class StoreError(LettercastError):
    """Persistence operation failed."""

    pass


class ConflictError(StoreError):
    """A subscriber with this email already exists."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"A subscriber with email '{email}' already exists")


class SendError(LettercastError):
    """Email could not be delivered to the provider."""

    def __init__(self, recipient: str, error: str) -> None:
        self.recipient = recipient
        self.error = error
        super().__init__(f"Failed to send email to {recipient}: {error}")


class UnexpectedError(LettercastError):
    """
    Catch-all for lower-layer failures.

    `context` says which step failed and for whom; the original
    exception is available as __cause__.
    """

    def __init__(self, context: str) -> None:
        self.context = context
        super().__init__(context)


CLIENT_ERRORS: tuple[type[LettercastError], ...] = (ValidationError, UnknownTokenError)
