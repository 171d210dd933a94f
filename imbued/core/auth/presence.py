"""
User Presence Checks

A presence check asks the person at the machine to confirm a request
(TouchID, password prompt). It blocks until they answer.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from ...config import PRESENCE_PROMPT
from ...shell import run_command

logger = logging.getLogger(__name__)


class PresenceCheck(ABC):
    """Single blocking yes/no confirmation from the user."""

    @abstractmethod
    async def confirm(self, process_id: str, secret_names: List[str]) -> bool:
        """
        Ask the user to confirm access.

        Returns:
            True if the user confirmed, False on denial or any failure
        """
        pass


class SecurityPresenceCheck(PresenceCheck):
    """Prompts via the macOS `security authorize` tool (TouchID or password)."""

    def __init__(self, prompt: str = PRESENCE_PROMPT):
        self.prompt = prompt

    async def confirm(self, process_id: str, secret_names: List[str]) -> bool:
        success, output = await run_command(["security", "authorize", "-u", "-p", self.prompt])
        if not success:
            logger.info(f"Presence check for process {process_id} not confirmed: {output}")
        return success
