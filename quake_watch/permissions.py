"""Permission Gate - One-shot acquisition of push permission and token.

Runs once before polling starts. A denial is not fatal: the caller keeps
polling and simply does not wire in push notifications.
"""

import logging
import threading
from typing import Protocol

from quake_watch.core.errors import PermissionErrorKind, PermissionFailure, PermissionResult
from quake_watch.core.formatter import format_test_notification
from quake_watch.notifier import NotificationSink


logger = logging.getLogger(__name__)


class PermissionProvider(Protocol):
    """Platform permission API."""

    def request(self) -> bool:
        ...

    def get_token(self) -> str:
        ...


class PermissionGate:
    """Acquires notification permission and a push token, once.

    After a grant the token is cached and returned without asking the
    provider again. Denials and failures are not cached.
    """

    def __init__(self, provider: PermissionProvider) -> None:
        self.provider = provider
        self._token: str | None = None
        self._lock = threading.Lock()

    @property
    def token(self) -> str | None:
        return self._token

    def acquire(self) -> PermissionResult:
        """Request permission and fetch the push token.

        Returns:
            PermissionResult with the token, or a DENIED/UNAVAILABLE error
        """
        with self._lock:
            if self._token is not None:
                return PermissionResult(token=self._token)

            try:
                granted = self.provider.request()
            except Exception as e:
                logger.error("Permission request failed: %s", str(e))
                return PermissionResult(error=PermissionFailure(
                    kind=PermissionErrorKind.UNAVAILABLE,
                    detail=str(e),
                ))

            if not granted:
                logger.warning("Failed to get push token for push notification: permission denied")
                return PermissionResult(error=PermissionFailure(
                    kind=PermissionErrorKind.DENIED,
                ))

            try:
                token = self.provider.get_token()
            except Exception as e:
                logger.error("Failed to get push token: %s", str(e))
                return PermissionResult(error=PermissionFailure(
                    kind=PermissionErrorKind.UNAVAILABLE,
                    detail=str(e),
                ))

            self._token = token
            logger.info("Acquired push token")
            return PermissionResult(token=token)


def send_test_notification(sink: NotificationSink) -> bool:
    """Send the one-off test notification through a sink.

    Returns:
        True if the sink accepted it
    """
    content = format_test_notification()
    result = sink.schedule(content.title, content.body, content.payload)

    if result.success:
        logger.info("Test notification sent")
    else:
        logger.warning("Test notification failed: %s", result.error)

    return result.success
