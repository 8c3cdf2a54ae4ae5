"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- USGS feed client (HTTP)
- Expo push client (HTTP)
- Secret Manager client (secrets)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from quake_watch.shell.feed_client import FeedClient
from quake_watch.shell.expo_push_client import ExpoPushClient
from quake_watch.shell.permission_provider import ConfiguredPermissionProvider
from quake_watch.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "FeedClient",
    "ExpoPushClient",
    "ConfiguredPermissionProvider",
    "load_config",
    "load_config_from_env",
]
