"""
Secrets Backend Interface

Defines the abstract interface every secrets provider implements.
Backends are created fresh for each request and closed when it ends.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from .errors import BackendConfigError, BackendNotInitializedError, UnsupportedOperationError


class SecretsBackend(ABC):
    """
    Abstract base class for secrets backends.

    Implementations provide access to a specific secrets provider
    (a local env file, the OS keychain, 1Password, remote managers).

    Lifecycle:
        backend = SomeBackend()
        await backend.initialize({"file_path": "..."})
        value = await backend.get_secret("github_token")
        await backend.close()
    """

    backend_type: str = "base"

    # Keys that initialize() requires in the backend config
    required_keys: List[str] = []

    def __init__(self):
        self.config: Dict[str, str] = {}
        self.initialized = False

    def _require(self, config: Dict[str, str]) -> None:
        """Raise BackendConfigError naming the first missing required key."""
        for key in self.required_keys:
            if key not in config:
                raise BackendConfigError(f"{key} is required for {self.backend_type} backend")

    def _ensure_initialized(self) -> None:
        if not self.initialized:
            raise BackendNotInitializedError(f"{self.backend_type} backend not initialized")

    @abstractmethod
    async def initialize(self, config: Dict[str, str]) -> None:
        """
        Validate the backend config and prepare the provider.

        Args:
            config: Backend-specific settings from the `.imbued` file

        Raises:
            BackendConfigError: If a required key is missing
            BackendError: If the provider cannot be reached
        """
        pass

    @abstractmethod
    async def get_secret(self, key: str) -> str:
        """
        Get a secret value.

        Args:
            key: Secret name

        Returns:
            The secret value

        Raises:
            BackendNotInitializedError: If called before initialize()
            SecretNotFoundError: If the key does not exist
        """
        pass

    async def store_secrets(self, secrets: Dict[str, str]) -> None:
        """
        Persist name -> value pairs.

        Optional capability. Backends that cannot store raise
        UnsupportedOperationError.
        """
        raise UnsupportedOperationError(f"{self.backend_type} backend does not support storing secrets")

    async def close(self) -> None:
        """Release resources. Safe to call more than once or before initialize()."""
        self.initialized = False

    @property
    def supports_store(self) -> bool:
        return type(self).store_secrets is not SecretsBackend.store_secrets
