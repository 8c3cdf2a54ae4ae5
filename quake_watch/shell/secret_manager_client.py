"""Secret Manager Client - Imperative Shell.

This module reads secrets (such as the Expo access token) from Google Cloud
Secret Manager and resolves `${secret:name}` / `${ENV_VAR}` placeholders in
configuration values.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from google.cloud import secretmanager


logger = logging.getLogger(__name__)


SECRET_PREFIX = "secret:"


@dataclass
class SecretManagerConfig:
    """Configuration for Secret Manager client.

    Attributes:
        project_id: GCP project ID
    """
    project_id: Optional[str] = None


def parse_placeholder(value: str) -> Optional[str]:
    """Return the inside of a `${...}` placeholder, or None if not one."""
    if value.startswith("${") and value.endswith("}"):
        return value[2:-1]
    return None


class SecretManagerClient:
    """Client for reading secrets from Google Cloud Secret Manager.

    This is part of the imperative shell - it handles secret I/O.
    """

    def __init__(self, config: Optional[SecretManagerConfig] = None) -> None:
        self.config = config or SecretManagerConfig()
        self._client: Optional[secretmanager.SecretManagerServiceClient] = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy initialization of Secret Manager client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(self, secret_name: str, version: str = "latest") -> Optional[str]:
        """Fetch a secret value from Secret Manager.

        This method performs I/O.

        Args:
            secret_name: Name of the secret (not the full resource path)
            version: Version of the secret (default: "latest")

        Returns:
            Secret value as string, or None if not found
        """
        if not self.config.project_id:
            logger.error("No project ID configured for Secret Manager")
            return None

        name = f"projects/{self.config.project_id}/secrets/{secret_name}/versions/{version}"

        try:
            logger.info("Fetching secret: %s", secret_name)
            response = self.client.access_secret_version(request={"name": name})
            return response.payload.data.decode("UTF-8")
        except Exception as e:
            logger.error("Failed to fetch secret %s: %s", secret_name, str(e))
            return None

    def resolve(self, value: str) -> str:
        """Resolve a `${secret:name}` or `${ENV_VAR}` placeholder.

        Values that are not placeholders, or that cannot be resolved, are
        returned unchanged so validation can flag them.
        """
        reference = parse_placeholder(value)
        if reference is None:
            return value

        if reference.startswith(SECRET_PREFIX):
            secret = self.get_secret(reference[len(SECRET_PREFIX):])
            return secret if secret is not None else value

        env_value = os.environ.get(reference)
        if env_value:
            return env_value

        logger.warning("Environment variable %s not set", reference)
        return value
