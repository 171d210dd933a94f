"""
Secrets Backends

Available backends for secrets storage, keyed by the `backend_type`
used in `.imbued` files.
"""

from typing import Dict, Type

from ..interface import SecretsBackend
from .envfile import EnvFileBackend
from .keychain import KeychainBackend
from .onepass import OnePassBackend, store_onepass_credentials
from .onepassword import OnePasswordBackend
from .remote import AWSSecretManagerBackend, GCPSecretManagerBackend, VaultBackend

# Registry of available backends
BACKENDS: Dict[str, Type[SecretsBackend]] = {
    "env_file": EnvFileBackend,
    "keychain": KeychainBackend,
    "macos_keychain": KeychainBackend,  # Alias
    "onepass": OnePassBackend,
    "onepassword": OnePasswordBackend,
    "1password": OnePasswordBackend,  # Alias
    "vault": VaultBackend,
    "aws_secret_manager": AWSSecretManagerBackend,
    "gcp_secret_manager": GCPSecretManagerBackend,
}


def register_backend(backend_type: str, backend_class: Type[SecretsBackend]) -> None:
    """Register (or replace) a backend implementation."""
    BACKENDS[backend_type] = backend_class


__all__ = [
    "BACKENDS",
    "register_backend",
    "EnvFileBackend",
    "KeychainBackend",
    "OnePassBackend",
    "OnePasswordBackend",
    "VaultBackend",
    "AWSSecretManagerBackend",
    "GCPSecretManagerBackend",
    "store_onepass_credentials",
]
