"""Tests for client.py — UsageClient SDK with resilience."""

from unittest.mock import MagicMock, patch

import httpx

from healthconsultant.client import (
    ClientInteractionLimit,
    ClientInteractionResult,
    UsageClient,
)


def _mock_response(data: dict, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


class TestUsageClientInit:
    def test_defaults(self):
        client = UsageClient()
        assert client.server_url == "http://localhost:8080"
        assert client.session_token is None
        assert client.max_retries == 3
        assert "Authorization" not in client._http.headers
        client.close()

    def test_bearer_header(self):
        client = UsageClient(server_url="http://custom:9090/", session_token="tok")
        assert client.server_url == "http://custom:9090"
        assert client._http.headers["Authorization"] == "Bearer tok"
        client.close()


class TestInteractionLimit:
    def test_parses_camel_case(self):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.get.return_value = _mock_response({
            "currentMonth": 2, "limit": 3, "remaining": 1, "hasUnlimited": False,
        })
        result = client.get_interaction_limit()
        assert result == ClientInteractionLimit(current_month=2, limit=3, remaining=1)

    def test_granted(self):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({
            "canInteract": True, "remainingInteractions": 2, "limit": 3,
            "currentMonth": 1, "hasUnlimited": False,
        })
        result = client.request_interaction("image_analysis")
        assert result.can_interact is True
        assert result.remaining_interactions == 2
        client._http.post.assert_called_once_with(
            "/usage/interaction-limit", json={"interactionType": "image_analysis"},
        )

    def test_denied_429_not_retried(self):
        client = UsageClient(session_token="tok", retry_backoff_base=0)
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({
            "canInteract": False, "remainingInteractions": 0, "limit": 3,
            "message": "limit reached",
        }, status_code=429)
        result = client.request_interaction()
        assert result == ClientInteractionResult(
            can_interact=False, remaining_interactions=0, limit=3,
            message="limit reached", code="QUOTA_EXCEEDED",
        )
        assert client._http.post.call_count == 1

    def test_unauthorized(self):
        client = UsageClient()
        client._http = MagicMock()
        client._http.post.return_value = _mock_response(
            {"message": "Unauthorized", "code": "UNAUTHORIZED"}, status_code=401,
        )
        result = client.request_interaction()
        assert result.can_interact is False
        assert result.code == "UNAUTHORIZED"


class TestRetry:
    @patch("healthconsultant.client.time.sleep")
    def test_retries_5xx_then_succeeds(self, mock_sleep):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.get.side_effect = [
            _mock_response({}, status_code=503),
            _mock_response({"currentMonth": 0, "hasUnlimited": True}),
        ]
        result = client.get_interaction_limit()
        assert result.has_unlimited is True
        assert mock_sleep.call_count == 1

    @patch("healthconsultant.client.time.sleep")
    def test_connection_errors_exhaust(self, mock_sleep):
        client = UsageClient(session_token="tok", max_retries=2)
        client._http = MagicMock()
        client._http.get.side_effect = httpx.ConnectError("refused")
        result = client.get_interaction_limit()
        assert result.code == "CONNECTION_ERROR"
        assert client._http.get.call_count == 2

    @patch("healthconsultant.client.time.sleep")
    def test_post_sent_once_after_read_timeout(self, mock_sleep):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.side_effect = httpx.ReadTimeout("slow")
        assert client.record_interaction() is False
        assert client._http.post.call_count == 1
        mock_sleep.assert_not_called()

    @patch("healthconsultant.client.time.sleep")
    def test_post_not_retried_on_5xx(self, mock_sleep):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({}, status_code=502)
        result = client.request_interaction()
        assert result.can_interact is False
        assert result.code == "SERVER_ERROR"
        assert client._http.post.call_count == 1

    @patch("healthconsultant.client.time.sleep")
    def test_post_retried_when_connection_refused(self, mock_sleep):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.side_effect = [
            httpx.ConnectError("refused"),
            _mock_response({"canInteract": True, "remainingInteractions": 1, "limit": 3}),
        ]
        result = client.request_interaction()
        assert result.can_interact is True
        assert client._http.post.call_count == 2


class TestRecordInteraction:
    def test_success(self):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({"message": "Usage recorded successfully"})
        assert client.record_interaction(prompts=3) is True
        client._http.post.assert_called_once_with("/usage/record", json={"prompts": 3})

    @patch("healthconsultant.client.time.sleep")
    def test_server_error_returns_false(self, mock_sleep):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({}, status_code=500)
        assert client.record_interaction() is False
        assert client._http.post.call_count == 1

    def test_unexpected_error_never_raises(self):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.post.side_effect = RuntimeError("boom")
        assert client.record_interaction() is False


class TestAdminUsage:
    def test_passes_date_range(self):
        client = UsageClient(session_token="tok")
        client._http = MagicMock()
        client._http.get.return_value = _mock_response({"stats": {}, "records": []})
        data = client.admin_usage(start_date="2025-05-01", end_date="2025-05-31")
        assert data == {"stats": {}, "records": []}
        client._http.get.assert_called_once_with(
            "/admin/usage", params={"startDate": "2025-05-01", "endDate": "2025-05-31"},
        )
