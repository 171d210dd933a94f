"""
1Password CLI Secrets Backend

Uses the `op` CLI with a service account token. The token and vault id
live in the OS credential store, saved there by store_onepass_credentials().
"""

import json
import logging
from typing import Dict, List, Optional, Tuple

from ....config import ONEPASS_SERVICE
from ....shell import run_command
from ..credential_store import CredentialStore, KeyringCredentialStore
from ..errors import BackendConfigError, BackendError, SecretNotFoundError
from ..interface import SecretsBackend

logger = logging.getLogger(__name__)

ACCOUNT_TOKEN_KEY = "account_token"
VAULT_ID_KEY = "vault_id"


async def store_onepass_credentials(store: CredentialStore, account_token: str, vault_id: str) -> None:
    """Save the 1Password service account token and vault id for the onepass backend."""
    await store.set(ONEPASS_SERVICE, ACCOUNT_TOKEN_KEY, account_token)
    await store.set(ONEPASS_SERVICE, VAULT_ID_KEY, vault_id)


class OnePassBackend(SecretsBackend):
    """
    1Password backend driven through the `op` CLI.

    Config:
        vault_id: Vault to use (optional, overrides the stored vault id)

    Items are looked up by title; the value is the item's "password" field.
    """

    backend_type = "onepass"

    def __init__(self, store: Optional[CredentialStore] = None):
        super().__init__()
        self.store = store or KeyringCredentialStore()
        self._account_token: Optional[str] = None
        self._vault_id: Optional[str] = None

    async def _run_op(self, args: List[str]) -> Tuple[bool, str]:
        """Run an op CLI command as the service account."""
        env = {"OP_SERVICE_ACCOUNT_TOKEN": self._account_token} if self._account_token else None
        return await run_command(["op"] + args, env=env)

    async def initialize(self, config: Dict[str, str]) -> None:
        self.config = config

        success, output = await run_command(["op", "--version"])
        if not success:
            raise BackendError(f"1Password CLI not found or not working: {output}")

        token = await self.store.get(ONEPASS_SERVICE, ACCOUNT_TOKEN_KEY)
        if not token:
            raise BackendConfigError(
                f"{ACCOUNT_TOKEN_KEY} is required for onepass backend (not found in credential store)"
            )

        vault_id = config.get(VAULT_ID_KEY) or await self.store.get(ONEPASS_SERVICE, VAULT_ID_KEY)
        if not vault_id:
            raise BackendConfigError(f"{VAULT_ID_KEY} is required for onepass backend")

        self._account_token = token
        self._vault_id = vault_id
        self.initialized = True

    async def get_secret(self, key: str) -> str:
        self._ensure_initialized()

        success, output = await self._run_op(
            ["item", "get", key, "--vault", self._vault_id, "--format", "json"]
        )
        if not success:
            if "not found" in output or "isn't an item" in output:
                raise SecretNotFoundError(f"secret not found: {key}")
            raise BackendError(f"failed to get secret from 1Password: {output}")

        try:
            item = json.loads(output)
        except json.JSONDecodeError as e:
            raise BackendError(f"failed to parse 1Password response: {e}") from e

        fields = item.get("fields") if isinstance(item, dict) else None
        if not isinstance(fields, list):
            raise BackendError("unexpected response format from 1Password")

        for field in fields:
            if isinstance(field, dict) and field.get("label") == "password":
                value = field.get("value")
                if isinstance(value, str):
                    return value

        raise SecretNotFoundError(f"password field not found in 1Password item: {key}")

    async def store_secrets(self, secrets: Dict[str, str]) -> None:
        """
        Create one password item per key.

        Fails on the first key that already exists or cannot be created.
        Items created before the failure are left in place.
        """
        self._ensure_initialized()

        for key, value in secrets.items():
            success, _ = await self._run_op(["item", "get", key, "--vault", self._vault_id])
            if success:
                raise BackendError(f"secret with key {key} already exists")

            success, output = await self._run_op([
                "item", "create",
                "--vault", self._vault_id,
                "--category", "password",
                "--title", key,
                f"password={value}"
            ])
            if not success:
                raise BackendError(f"failed to store secret {key} in 1Password: {output}")

        logger.info(f"✅ Created {len(secrets)} item(s) in 1Password vault {self._vault_id}")

    async def close(self) -> None:
        self._account_token = None
        self._vault_id = None
        await super().close()
