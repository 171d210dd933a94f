"""
1Password SDK Secrets Backend

Implements SecretsBackend for 1Password using the official SDK.
"""

import logging
import os
from typing import Dict, Optional

from onepassword.client import Client
from onepassword.types import ItemCategory, ItemCreateParams, ItemField, ItemFieldType

from ..errors import BackendConfigError, BackendError, SecretNotFoundError
from ..interface import SecretsBackend

logger = logging.getLogger(__name__)

INTEGRATION_NAME = "imbued"
INTEGRATION_VERSION = "v0.1.0"


class OnePasswordBackend(SecretsBackend):
    """
    1Password secrets backend.

    Config:
        vault: Vault name (required)
        field: Field to read from each item (default: "credential")
        service_account_env: Environment variable holding the service account token
                            (default: "OP_SERVICE_ACCOUNT_TOKEN")
    """

    backend_type = "onepassword"
    required_keys = ["vault"]

    def __init__(self):
        super().__init__()
        self.vault = ""
        self.field = "credential"
        self._client: Optional[Client] = None
        self._vault_id: Optional[str] = None

    async def initialize(self, config: Dict[str, str]) -> None:
        """Authenticate the SDK client and resolve the vault id."""
        self._require(config)
        self.config = config
        self.vault = config["vault"]
        self.field = config.get("field", "credential")

        token_env = config.get("service_account_env", "OP_SERVICE_ACCOUNT_TOKEN")
        token = os.getenv(token_env)
        if not token:
            raise BackendConfigError(f"environment variable {token_env} is required for onepassword backend")

        try:
            self._client = await Client.authenticate(
                auth=token,
                integration_name=INTEGRATION_NAME,
                integration_version=INTEGRATION_VERSION
            )
            vaults = await self._client.vaults.list()
        except Exception as e:
            self._client = None
            raise BackendError(f"failed to connect to 1Password: {e}") from e

        for v in vaults:
            if v.title.lower() == self.vault.lower():
                self._vault_id = v.id
                break

        if not self._vault_id:
            logger.warning(f"⚠️ Vault '{self.vault}' not found, storing secrets will fail")

        self.initialized = True
        logger.info(f"✅ Connected to 1Password vault: {self.vault}")

    async def get_secret(self, key: str) -> str:
        self._ensure_initialized()

        secret_ref = f"op://{self.vault}/{key}/{self.field}"
        try:
            return await self._client.secrets.resolve(secret_ref)
        except Exception as e:
            raise SecretNotFoundError(f"secret not found: {key}/{self.field} in {self.vault}: {e}") from e

    async def store_secrets(self, secrets: Dict[str, str]) -> None:
        """Create one API credential item per key, holding the value in its concealed field."""
        self._ensure_initialized()

        if not self._vault_id:
            raise BackendError(f"vault '{self.vault}' not found")

        for key, value in secrets.items():
            params = ItemCreateParams(
                title=key,
                category=ItemCategory.APICREDENTIALS,
                vault_id=self._vault_id,
                fields=[
                    ItemField(
                        id=self.field,
                        title=self.field,
                        value=value,
                        field_type=ItemFieldType.CONCEALED
                    )
                ]
            )
            try:
                await self._client.items.create(params)
            except Exception as e:
                raise BackendError(f"failed to create item {key}: {e}") from e

        logger.info(f"✅ Created {len(secrets)} item(s) in 1Password vault {self.vault}")

    async def close(self) -> None:
        self._client = None
        self._vault_id = None
        await super().close()
