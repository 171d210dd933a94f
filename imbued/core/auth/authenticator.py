"""
Process Authenticator

Grants are held in memory only, keyed by process id, and expire after a
fixed duration. Expired grants are evicted lazily when read.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Callable, Dict, List, Union

from .presence import PresenceCheck

logger = logging.getLogger(__name__)


class Authenticator(ABC):
    """Interface for authentication providers."""

    @abstractmethod
    async def authenticate(self, process_id: str, secret_names: List[str]) -> bool:
        """
        Authorize process_id to access secret_names.

        Returns:
            True if authorized (newly or already), False if the user denied it
        """
        pass

    @abstractmethod
    async def is_authenticated(self, process_id: str) -> bool:
        """Check whether process_id holds a valid grant."""
        pass

    @abstractmethod
    async def record_access(self, process_id: str, secret_names: List[str]) -> None:
        """Advisory hook called after secrets were handed out."""
        pass


class SimpleAuthenticator(Authenticator):
    """
    In-memory authenticator backed by a user presence check.

    Args:
        auth_duration: How long a grant stays valid (timedelta or seconds)
        presence_check: Asked once per authentication attempt
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        auth_duration: Union[timedelta, float],
        presence_check: PresenceCheck,
        clock: Callable[[], float] = time.monotonic
    ):
        if isinstance(auth_duration, timedelta):
            auth_duration = auth_duration.total_seconds()
        self.auth_duration = float(auth_duration)
        self.presence_check = presence_check
        self.clock = clock
        self._grants: Dict[str, float] = {}  # process id -> expiry
        self._lock = asyncio.Lock()

    def _valid_locked(self, process_id: str) -> bool:
        expiry = self._grants.get(process_id)
        if expiry is None:
            return False
        if self.clock() > expiry:
            del self._grants[process_id]
            return False
        return True

    async def authenticate(self, process_id: str, secret_names: List[str]) -> bool:
        async with self._lock:
            if self._valid_locked(process_id):
                return True

        # The prompt can take as long as the user likes; don't hold the lock.
        confirmed = await self.presence_check.confirm(process_id, secret_names)
        if not confirmed:
            logger.info(f"❌ Authentication denied for process {process_id}")
            return False

        async with self._lock:
            self._grants[process_id] = self.clock() + self.auth_duration

        logger.info(f"✅ Process {process_id} authenticated for secrets: {', '.join(secret_names)}")
        return True

    async def is_authenticated(self, process_id: str) -> bool:
        if not process_id:
            return False
        async with self._lock:
            return self._valid_locked(process_id)

    async def record_access(self, process_id: str, secret_names: List[str]) -> None:
        logger.info(f"Process {process_id} accessed secrets: {', '.join(secret_names)}")
