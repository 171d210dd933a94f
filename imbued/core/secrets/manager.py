"""
Secrets Backend Factory

Creates backend instances by type. Every request gets its own instance;
nothing is cached or shared between connections.

Usage:
    from imbued.core.secrets import open_backend

    async with open_backend("env_file", {"file_path": "~/.secrets.env"}) as backend:
        token = await backend.get_secret("github_token")
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from .backends import BACKENDS
from .errors import SecretsError, UnknownBackendError
from .interface import SecretsBackend

logger = logging.getLogger(__name__)


class BackendSetupError(SecretsError):
    """
    Raised by open_backend when a backend cannot be created or initialized.

    `stage` is "create" or "initialize"; the original error is chained.
    """

    def __init__(self, stage: str, cause: Exception):
        super().__init__(str(cause))
        self.stage = stage
        self.cause = cause


def create_backend(backend_type: str) -> SecretsBackend:
    """
    Create an uninitialized backend.

    Raises:
        UnknownBackendError: If no backend is registered under backend_type
    """
    backend_class = BACKENDS.get(backend_type)
    if backend_class is None:
        raise UnknownBackendError(f"unsupported backend type: {backend_type}")
    return backend_class()


@asynccontextmanager
async def open_backend(backend_type: str, config: Dict[str, str]) -> AsyncIterator[SecretsBackend]:
    """
    Create and initialize a backend, closing it when the block exits.

    Raises:
        BackendSetupError: If creation or initialization fails
    """
    try:
        backend = create_backend(backend_type)
    except SecretsError as e:
        raise BackendSetupError("create", e) from e

    try:
        try:
            await backend.initialize(dict(config or {}))
        except Exception as e:
            raise BackendSetupError("initialize", e) from e
        yield backend
    finally:
        try:
            await backend.close()
        except Exception as e:
            logger.warning(f"⚠️ Failed to close {backend_type} backend: {e}")
