"""Exceptions raised by secrets backends."""


class SecretsError(Exception):
    """Base class for all backend errors."""


class BackendConfigError(SecretsError):
    """A required backend setting is missing or invalid."""


class BackendNotInitializedError(SecretsError):
    """An operation was attempted before initialize()."""


class SecretNotFoundError(SecretsError):
    """The requested key does not exist in the backend."""


class UnsupportedOperationError(SecretsError, NotImplementedError):
    """The backend does not provide the requested capability."""


class UnknownBackendError(SecretsError, ValueError):
    """No backend is registered under the requested type."""


class BackendError(SecretsError):
    """The provider failed while reading or writing."""


class CredentialStoreError(SecretsError):
    """The OS credential store could not be read or written."""
