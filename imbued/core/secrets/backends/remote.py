"""
Remote Secret Manager Backends

HashiCorp Vault, AWS Secrets Manager and GCP Secret Manager.

These validate their settings but do not talk to the providers yet:
get_secret returns a deterministic placeholder derived from the key.
"""

from typing import Dict

from ..interface import SecretsBackend


class _PlaceholderBackend(SecretsBackend):
    """Shared behaviour for the not-yet-wired remote providers."""

    placeholder_prefix = "remote"

    async def initialize(self, config: Dict[str, str]) -> None:
        self._require(config)
        self.config = dict(config)
        self.initialized = True

    async def get_secret(self, key: str) -> str:
        self._ensure_initialized()
        return f"{self.placeholder_prefix}-secret-{key}"

    async def close(self) -> None:
        self.config = {}
        await super().close()


class VaultBackend(_PlaceholderBackend):
    """
    HashiCorp Vault.

    Config:
        address: Vault server address (required)
        token: Vault token (required)
    """

    backend_type = "vault"
    required_keys = ["address", "token"]
    placeholder_prefix = "vault"


class AWSSecretManagerBackend(_PlaceholderBackend):
    """
    AWS Secrets Manager.

    Config:
        region, access_key, secret_key (required)
        session_token (optional)
    """

    backend_type = "aws_secret_manager"
    required_keys = ["region", "access_key", "secret_key"]
    placeholder_prefix = "aws"


class GCPSecretManagerBackend(_PlaceholderBackend):
    """
    GCP Secret Manager.

    Config:
        project_id, credentials (required)
    """

    backend_type = "gcp_secret_manager"
    required_keys = ["project_id", "credentials"]
    placeholder_prefix = "gcp"
