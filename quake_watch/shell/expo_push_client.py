"""Expo Push Client - Imperative Shell.

This module sends push notifications to a device through the Expo push
service. It implements the NotificationSink interface used by the
ThresholdNotifier. All I/O is contained here; message content comes from
the core formatter.
"""

import json
import logging
from typing import Any

import requests

from quake_watch.core.config import EXPO_PUSH_URL
from quake_watch.core.errors import DispatchError, DispatchErrorKind, DispatchResult


logger = logging.getLogger(__name__)


# Default timeout for push requests (seconds)
DEFAULT_TIMEOUT = 10

# Ticket error codes meaning the device can no longer receive pushes
UNAVAILABLE_TICKET_ERRORS = frozenset({"DeviceNotRegistered"})


class ExpoPushClient:
    """Notification sink that delivers messages via Expo push.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        push_token: str,
        access_token: str | None = None,
        push_url: str = EXPO_PUSH_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize Expo push client.

        Args:
            push_token: Expo push token of the receiving device
            access_token: Expo access token, if push security is enabled
            push_url: Expo push endpoint
            timeout: Request timeout in seconds
        """
        self.push_token = push_token
        self.access_token = access_token
        self.push_url = push_url
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def build_message(self, title: str, body: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Build the Expo push message for a notification."""
        return {
            "to": self.push_token,
            "title": title,
            "body": body,
            "data": payload,
            "sound": "default",
        }

    def schedule(self, title: str, body: str, payload: dict[str, Any]) -> DispatchResult:
        """Send a notification to the device.

        This method performs HTTP I/O.

        Args:
            title: Notification title
            body: Notification body
            payload: Data attached to the notification

        Returns:
            DispatchResult with the Expo ticket ID, or an error
        """
        message = self.build_message(title, body, payload)

        try:
            encoded = json.dumps(message)
        except (TypeError, ValueError) as e:
            logger.error("Notification payload is not JSON-serializable: %s", str(e))
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.INVALID_PAYLOAD,
                detail=str(e),
            ))

        logger.info("Sending push notification: %s", title)

        try:
            response = requests.post(
                self.push_url,
                data=encoded,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Expo push request timed out")
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail="Request timed out",
            ))
        except requests.RequestException as e:
            logger.error("Expo push request failed: %s", str(e))
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail=str(e),
            ))

        if response.status_code != 200:
            kind = (
                DispatchErrorKind.INVALID_PAYLOAD
                if 400 <= response.status_code < 500
                else DispatchErrorKind.SINK_UNAVAILABLE
            )
            logger.warning(
                "Expo push returned non-200: %d - %s",
                response.status_code,
                response.text,
            )
            return DispatchResult(error=DispatchError(
                kind=kind,
                detail=f"HTTP {response.status_code}: {response.text}",
            ))

        return self._parse_ticket(response)

    def _parse_ticket(self, response: requests.Response) -> DispatchResult:
        """Turn an Expo push ticket into a DispatchResult."""
        try:
            data = response.json().get("data")
        except (ValueError, AttributeError):
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail="Malformed response from Expo push service",
            ))

        # A single message gets a single ticket; a batch gets a list
        if isinstance(data, list):
            data = data[0] if data else None

        if not isinstance(data, dict):
            return DispatchResult(error=DispatchError(
                kind=DispatchErrorKind.SINK_UNAVAILABLE,
                detail="No push ticket in response",
            ))

        if data.get("status") == "ok":
            logger.info("Push notification accepted: %s", data.get("id"))
            return DispatchResult(notification_id=data.get("id"))

        error_code = (data.get("details") or {}).get("error", "")
        message = data.get("message", "Unknown push error")
        logger.warning("Push ticket error %s: %s", error_code, message)

        kind = (
            DispatchErrorKind.SINK_UNAVAILABLE
            if error_code in UNAVAILABLE_TICKET_ERRORS
            else DispatchErrorKind.INVALID_PAYLOAD
        )
        detail = f"{error_code}: {message}" if error_code else message
        return DispatchResult(error=DispatchError(kind=kind, detail=detail))
