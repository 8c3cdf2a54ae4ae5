"""Tests for the Expo push client.

Uses the `responses` library to mock HTTP requests.
"""

import json

import pytest
import requests
import responses

from quake_watch.core.config import EXPO_PUSH_URL
from quake_watch.core.errors import DispatchErrorKind
from quake_watch.shell.expo_push_client import ExpoPushClient


TOKEN = "ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]"


@pytest.fixture
def client():
    return ExpoPushClient(push_token=TOKEN)


class TestExpoPushClientSchedule:
    """Tests for ExpoPushClient.schedule()."""

    @responses.activate
    def test_successful_push_returns_ticket_id(self, client):
        """An ok ticket yields its id as the notification id."""
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {"status": "ok", "id": "ticket-123"}},
            status=200,
        )

        result = client.schedule("Earthquake Alert!", "Magnitude: 5.6 at X", {"quake": {"id": "eq1"}})

        assert result.success is True
        assert result.notification_id == "ticket-123"
        assert result.error is None

    @responses.activate
    def test_sends_expo_message(self, client):
        """The request body is an Expo push message for the device."""
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {"status": "ok", "id": "t"}},
            status=200,
        )

        client.schedule("Title", "Body", {"quake": {"id": "eq1"}})

        body = json.loads(responses.calls[0].request.body)
        assert body == {
            "to": TOKEN,
            "title": "Title",
            "body": "Body",
            "data": {"quake": {"id": "eq1"}},
            "sound": "default",
        }

    @responses.activate
    def test_access_token_sent_as_bearer(self):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {"status": "ok", "id": "t"}},
            status=200,
        )

        ExpoPushClient(push_token=TOKEN, access_token="secret").schedule("T", "B", {})

        assert responses.calls[0].request.headers["Authorization"] == "Bearer secret"

    @responses.activate
    def test_no_auth_header_without_access_token(self, client):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {"status": "ok", "id": "t"}},
            status=200,
        )

        client.schedule("T", "B", {})

        assert "Authorization" not in responses.calls[0].request.headers

    @responses.activate
    def test_accepts_list_of_tickets(self, client):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": [{"status": "ok", "id": "ticket-9"}]},
            status=200,
        )

        result = client.schedule("T", "B", {})

        assert result.notification_id == "ticket-9"

    @responses.activate
    def test_device_not_registered_is_sink_unavailable(self, client):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {
                "status": "error",
                "message": "The recipient device is not registered with FCM.",
                "details": {"error": "DeviceNotRegistered"},
            }},
            status=200,
        )

        result = client.schedule("T", "B", {})

        assert result.success is False
        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE
        assert "DeviceNotRegistered" in result.error.detail

    @responses.activate
    def test_message_too_big_is_invalid_payload(self, client):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"data": {
                "status": "error",
                "message": "Message too big",
                "details": {"error": "MessageTooBig"},
            }},
            status=200,
        )

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.INVALID_PAYLOAD

    @responses.activate
    def test_client_error_status_is_invalid_payload(self, client):
        responses.add(
            responses.POST,
            EXPO_PUSH_URL,
            json={"errors": [{"code": "VALIDATION_ERROR", "message": "bad"}]},
            status=400,
        )

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.INVALID_PAYLOAD
        assert "400" in result.error.detail

    @responses.activate
    def test_server_error_status_is_sink_unavailable(self, client):
        responses.add(responses.POST, EXPO_PUSH_URL, body="oops", status=502)

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE

    @responses.activate
    def test_timeout_is_sink_unavailable(self, client):
        responses.add(responses.POST, EXPO_PUSH_URL, body=requests.Timeout("slow"))

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE
        assert result.error.detail == "Request timed out"

    @responses.activate
    def test_connection_error_is_sink_unavailable(self, client):
        responses.add(responses.POST, EXPO_PUSH_URL, body=requests.ConnectionError("down"))

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE

    @responses.activate
    def test_malformed_response_is_sink_unavailable(self, client):
        responses.add(responses.POST, EXPO_PUSH_URL, body="not json", status=200)

        result = client.schedule("T", "B", {})

        assert result.error.kind is DispatchErrorKind.SINK_UNAVAILABLE

    def test_unserializable_payload_is_invalid_payload(self, client):
        """Payloads that cannot be encoded never reach the network."""
        result = client.schedule("T", "B", {"bad": object()})

        assert result.success is False
        assert result.error.kind is DispatchErrorKind.INVALID_PAYLOAD
