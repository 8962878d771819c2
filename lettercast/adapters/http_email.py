"""
HTTP Email Client.

Sends transactional email through the provider's REST API:

    POST {base_url}/v1.0/me/messages
    Authorization: Bearer <token>
    {"From": ..., "To": ..., "Subject": ..., "Content": {"contentType": "HTML", "content": ...}}

One request per email, bounded by a fixed timeout, no retries. Any
non-2xx status, transport error or timeout becomes a FAILED result.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lettercast.core.ports.email import EmailResult

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/v1.0/me/messages"


class HttpEmailClient:
    """EmailPort implementation backed by a shared httpx.Client."""

    def __init__(
        self,
        base_url: str,
        sender: str,
        authorization_token: str,
        timeout_ms: int = 10_000,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self._authorization_token = authorization_token
        self.timeout = httpx.Timeout(timeout_ms / 1000)
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    def _payload(self, recipient: str, subject: str, body_html: str) -> dict[str, Any]:
        return {
            "From": self.sender,
            "To": recipient,
            "Subject": subject,
            "Content": {"contentType": "HTML", "content": body_html},
        }

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
    ) -> EmailResult:
        headers = {"Authorization": f"Bearer {self._authorization_token}"}
        try:
            response = self._client.post(
                MESSAGES_PATH,
                json=self._payload(recipient, subject, body_html),
                headers=headers,
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning("Email provider timed out sending to %s", recipient)
            return EmailResult.failed(recipient, f"Timed out after {self.timeout.read}s")
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Email provider rejected message to %s: HTTP %s",
                recipient,
                e.response.status_code,
            )
            return EmailResult.failed(recipient, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning("Email provider request failed for %s: %s", recipient, e)
            return EmailResult.failed(recipient, str(e))

        return EmailResult.success(recipient, message_id=self._message_id(response))

    def _message_id(self, response: httpx.Response) -> str | None:
        if not response.headers.get("content-type", "").startswith("application/json"):
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("MessageID") or body.get("id")
        return None

    def close(self) -> None:
        self._client.close()
