"""
OS Credential Store

Narrow get/set/delete capability over the platform credential store
(macOS Keychain, Windows Credential Locker, Secret Service on Linux).
Backends depend on this interface, never on platform tools directly.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CredentialStoreError

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Abstract service/account keyed credential store."""

    @abstractmethod
    async def get(self, service: str, account: str) -> Optional[str]:
        """Return the stored secret, or None if there is none."""
        pass

    @abstractmethod
    async def set(self, service: str, account: str, secret: str) -> None:
        """Create or replace a secret."""
        pass

    @abstractmethod
    async def delete(self, service: str, account: str) -> bool:
        """Delete a secret. Returns False if it did not exist."""
        pass


class KeyringCredentialStore(CredentialStore):
    """
    Credential store backed by the `keyring` library.

    keyring calls block (and may show OS prompts), so they run in a
    worker thread.
    """

    async def get(self, service: str, account: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(keyring.get_password, service, account)
        except KeyringError as e:
            raise CredentialStoreError(f"failed to read {service}/{account}: {e}") from e

    async def set(self, service: str, account: str, secret: str) -> None:
        try:
            await asyncio.to_thread(keyring.set_password, service, account, secret)
        except KeyringError as e:
            raise CredentialStoreError(f"failed to write {service}/{account}: {e}") from e

    async def delete(self, service: str, account: str) -> bool:
        try:
            await asyncio.to_thread(keyring.delete_password, service, account)
            return True
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise CredentialStoreError(f"failed to delete {service}/{account}: {e}") from e
