"""Tests for the response helpers in ckli_hosting/hosting/rest.py."""

from datetime import UTC, datetime

import httpx
import pytest

from ckli_hosting.hosting.rest import extract_error_message, parse_retry_after, parse_timestamp


class TestExtractErrorMessage:
    """Tests for extract_error_message."""

    def test_message_field(self) -> None:
        response = httpx.Response(404, json={"message": "Not Found"})

        assert extract_error_message(response) == "Not Found"

    def test_error_field(self) -> None:
        response = httpx.Response(401, json={"error": "invalid_token"})

        assert extract_error_message(response) == "invalid_token"

    def test_github_error_details(self) -> None:
        response = httpx.Response(
            422,
            json={"message": "Validation Failed", "errors": [{"message": "name is too long"}, "other problem"]},
        )

        assert extract_error_message(response) == "Validation Failed; name is too long; other problem"

    def test_gitlab_nested_message(self) -> None:
        response = httpx.Response(400, json={"message": {"base": ["namespace is not valid"]}})

        assert extract_error_message(response) == "base namespace is not valid"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500),
            httpx.Response(500, text="<html>Internal Server Error</html>"),
            httpx.Response(500, json=["unexpected"]),
            httpx.Response(500, json={"message": ""}),
        ],
    )
    def test_fallback(self, response: httpx.Response) -> None:
        assert extract_error_message(response) == "HTTP 500: Internal Server Error"


class TestParseRetryAfter:
    """Tests for parse_retry_after."""

    def test_seconds(self) -> None:
        assert parse_retry_after(httpx.Response(429, headers={"Retry-After": "120"})) == 120.0

    def test_absent(self) -> None:
        assert parse_retry_after(httpx.Response(429)) is None

    def test_http_date_is_not_interpreted(self) -> None:
        response = httpx.Response(503, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})

        assert parse_retry_after(response) is None


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_zulu(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "yesterday", 42])
    def test_invalid(self, value: object) -> None:
        assert parse_timestamp(value) is None
