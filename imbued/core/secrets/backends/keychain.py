"""
Keychain Secrets Backend

Stores secrets in the OS credential store under a single service name,
one account per secret.
"""

import logging
from typing import Dict, Optional

from ....config import KEYCHAIN_SERVICE
from ..credential_store import CredentialStore, KeyringCredentialStore
from ..errors import SecretNotFoundError
from ..interface import SecretsBackend

logger = logging.getLogger(__name__)


class KeychainBackend(SecretsBackend):
    """
    OS-native credential store backend.

    Config:
        service: Service name items are filed under (default: "imbued")
    """

    backend_type = "keychain"

    def __init__(self, store: Optional[CredentialStore] = None):
        super().__init__()
        self.store = store or KeyringCredentialStore()
        self.service = KEYCHAIN_SERVICE

    async def initialize(self, config: Dict[str, str]) -> None:
        self.config = config
        self.service = config.get("service") or KEYCHAIN_SERVICE
        self.initialized = True

    async def get_secret(self, key: str) -> str:
        self._ensure_initialized()
        value = await self.store.get(self.service, key)
        if value is None:
            raise SecretNotFoundError(f"secret not found: {key}")
        return value

    async def store_secrets(self, secrets: Dict[str, str]) -> None:
        self._ensure_initialized()
        for key, value in secrets.items():
            await self.store.set(self.service, key, value)
        logger.info(f"✅ Stored {len(secrets)} secret(s) in keychain service {self.service}")
