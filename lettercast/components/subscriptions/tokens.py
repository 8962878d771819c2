"""
Confirmation token issuer.

Tokens are opaque 25-character alphanumeric strings from a CSPRNG.
They are matched by exact, case-sensitive equality; storage enforces
uniqueness with a primary key on the token column.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable

TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits

TokenIssuer = Callable[[], str]


def generate_subscription_token(length: int = TOKEN_LENGTH) -> str:
    """Generate a URL-safe alphanumeric confirmation token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
