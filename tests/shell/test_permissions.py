"""Tests for the PermissionGate."""

from unittest.mock import Mock

import pytest

from quake_watch.core.errors import DispatchError, DispatchErrorKind, DispatchResult, PermissionErrorKind
from quake_watch.permissions import PermissionGate, send_test_notification


TOKEN = "ExponentPushToken[abc]"


@pytest.fixture
def provider():
    provider = Mock()
    provider.request.return_value = True
    provider.get_token.return_value = TOKEN
    return provider


class TestPermissionGateAcquire:
    """Tests for PermissionGate.acquire()."""

    def test_granted_returns_token(self, provider):
        result = PermissionGate(provider).acquire()

        assert result.granted is True
        assert result.token == TOKEN
        assert result.error is None

    def test_second_acquire_uses_cached_token(self, provider):
        """Once granted, the provider is not asked again."""
        gate = PermissionGate(provider)

        gate.acquire()
        result = gate.acquire()

        assert result.token == TOKEN
        provider.request.assert_called_once()
        provider.get_token.assert_called_once()

    def test_denied(self, provider):
        provider.request.return_value = False

        result = PermissionGate(provider).acquire()

        assert result.granted is False
        assert result.error.kind is PermissionErrorKind.DENIED
        provider.get_token.assert_not_called()

    def test_denial_is_not_cached(self, provider):
        provider.request.return_value = False
        gate = PermissionGate(provider)
        gate.acquire()

        provider.request.return_value = True
        result = gate.acquire()

        assert result.granted is True
        assert provider.request.call_count == 2

    def test_request_failure_is_unavailable(self, provider):
        provider.request.side_effect = RuntimeError("no permission service")

        result = PermissionGate(provider).acquire()

        assert result.error.kind is PermissionErrorKind.UNAVAILABLE
        assert "no permission service" in result.error.detail

    def test_token_failure_is_unavailable(self, provider):
        provider.get_token.side_effect = ValueError("No push token configured")

        gate = PermissionGate(provider)
        result = gate.acquire()

        assert result.error.kind is PermissionErrorKind.UNAVAILABLE
        assert gate.token is None


class TestSendTestNotification:
    """Tests for send_test_notification()."""

    def test_sends_test_content(self):
        sink = Mock()
        sink.schedule.return_value = DispatchResult(notification_id="t1")

        assert send_test_notification(sink) is True
        sink.schedule.assert_called_once_with(
            "Test Notification",
            "This is a test notification",
            {},
        )

    def test_reports_failure(self):
        sink = Mock()
        sink.schedule.return_value = DispatchResult(error=DispatchError(
            kind=DispatchErrorKind.SINK_UNAVAILABLE,
            detail="down",
        ))

        assert send_test_notification(sink) is False
