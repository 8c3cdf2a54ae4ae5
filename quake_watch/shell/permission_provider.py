"""Permission Provider - Imperative Shell.

A process has no OS permission prompt, so permission and the push token
come from configuration: notifications are "granted" when enabled in config,
and the token is the Expo push token registered by the receiving device.
"""

import logging
import re


logger = logging.getLogger(__name__)


# Expo push tokens look like ExponentPushToken[xxxxxxxx] or ExpoPushToken[xxxxxxxx]
PUSH_TOKEN_PATTERN = re.compile(r"^Expo(nent)?PushToken\[[^\]]+\]$")


class PushTokenError(Exception):
    """Raised when no usable push token is available."""


def is_valid_push_token(token: str | None) -> bool:
    """Check whether a string looks like an Expo push token."""
    return bool(token) and PUSH_TOKEN_PATTERN.match(token) is not None


class ConfiguredPermissionProvider:
    """Permission provider backed by static configuration."""

    def __init__(self, enabled: bool, push_token: str | None = None) -> None:
        self.enabled = enabled
        self.push_token = push_token

    def request(self) -> bool:
        """Return True if notifications are allowed."""
        if not self.enabled:
            logger.info("Notifications disabled in configuration")
        return self.enabled

    def get_token(self) -> str:
        """Return the configured push token.

        Raises:
            PushTokenError: If the token is missing or malformed
        """
        if not self.push_token:
            raise PushTokenError("No push token configured")

        if not is_valid_push_token(self.push_token):
            raise PushTokenError(f"Malformed push token: {self.push_token!r}")

        return self.push_token
