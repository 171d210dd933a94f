"""
Secrets Module

Pluggable secret backends selected by type string.

Usage:
    from imbued.core.secrets import open_backend

    async with open_backend(config.backend_type, config.backend_config) as backend:
        value = await backend.get_secret("github_token")
"""

from .backends import BACKENDS, register_backend
from .credential_store import CredentialStore, KeyringCredentialStore
from .errors import (
    BackendConfigError,
    BackendError,
    BackendNotInitializedError,
    CredentialStoreError,
    SecretNotFoundError,
    SecretsError,
    UnknownBackendError,
    UnsupportedOperationError,
)
from .interface import SecretsBackend
from .manager import BackendSetupError, create_backend, open_backend

__all__ = [
    "BACKENDS",
    "register_backend",
    "create_backend",
    "open_backend",
    "SecretsBackend",
    "CredentialStore",
    "KeyringCredentialStore",
    "SecretsError",
    "BackendConfigError",
    "BackendError",
    "BackendNotInitializedError",
    "BackendSetupError",
    "CredentialStoreError",
    "SecretNotFoundError",
    "UnknownBackendError",
    "UnsupportedOperationError",
]
