"""
Unit tests for HttpEmailClient.

The provider is replaced with httpx.MockTransport; no network access.
"""

import json

import httpx
import pytest

from lettercast.adapters.http_email import MESSAGES_PATH, HttpEmailClient
from lettercast.core.ports.email import EmailStatus

BASE_URL = "http://email.test"


def make_client(handler, timeout_ms: int = 200) -> HttpEmailClient:
    return HttpEmailClient(
        base_url=BASE_URL,
        sender="newsletter@example.com",
        authorization_token="secret-token",
        timeout_ms=timeout_ms,
        transport=httpx.MockTransport(handler),
    )


class TestRequest:
    def test_posts_expected_payload(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"MessageID": "abc-123"})

        client = make_client(handler)
        result = client.send_email("reader@example.com", "Welcome!", "<p>Hi</p>")

        assert result.status == EmailStatus.SENT
        assert result.message_id == "abc-123"

        [request] = captured
        assert request.method == "POST"
        assert request.url == httpx.URL(BASE_URL + MESSAGES_PATH)
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == {
            "From": "newsletter@example.com",
            "To": "reader@example.com",
            "Subject": "Welcome!",
            "Content": {"contentType": "HTML", "content": "<p>Hi</p>"},
        }

    def test_trailing_slash_in_base_url(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200)

        client = HttpEmailClient(
            base_url=BASE_URL + "/",
            sender="s@example.com",
            authorization_token="t",
            transport=httpx.MockTransport(handler),
        )
        client.send_email("r@example.com", "S", "B")

        assert seen == [MESSAGES_PATH]

    def test_empty_response_body_has_no_message_id(self) -> None:
        client = make_client(lambda request: httpx.Response(202))

        result = client.send_email("r@example.com", "S", "B")

        assert result.ok
        assert result.message_id is None


class TestFailures:
    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    def test_non_success_status_is_failed_result(self, status_code: int) -> None:
        client = make_client(lambda request: httpx.Response(status_code))

        result = client.send_email("r@example.com", "S", "B")

        assert result.status == EmailStatus.FAILED
        assert result.error == f"HTTP {status_code}"
        assert result.recipient == "r@example.com"

    def test_timeout_is_failed_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler, timeout_ms=200)

        result = client.send_email("r@example.com", "S", "B")

        assert not result.ok
        assert result.error is not None
        assert "Timed out" in result.error

    def test_connection_error_is_failed_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        result = client.send_email("r@example.com", "S", "B")

        assert result.status == EmailStatus.FAILED
        assert "connection refused" in (result.error or "")

    def test_timeout_is_configured_from_milliseconds(self) -> None:
        client = make_client(lambda request: httpx.Response(200), timeout_ms=1500)
        assert client.timeout.read == 1.5
        client.close()
