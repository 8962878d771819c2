"""
Newsletter component models.

Input/output types and the delivery policy for broadcasts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DeliveryPolicy(Enum):
    """
    What a send failure does to the rest of a broadcast.

    FAIL_FAST: abort on the first failed send. Provider outages tend to
        affect every following send, so the remaining batch is not attempted.
    ISOLATE: record the failed recipient and keep going.

    Either way each confirmed subscriber gets at most one attempt per publish.
    """

    FAIL_FAST = "fail_fast"
    ISOLATE = "isolate"


@dataclass(frozen=True)
class PublishInput:
    """A newsletter issue."""

    title: str
    html_content: str


@dataclass
class PublishOutput:
    """Outcome of one broadcast."""

    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: int = 0  # Confirmed rows whose stored email failed validation

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)
