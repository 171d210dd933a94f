"""Unix socket daemon and its command handlers."""

from .daemon import SecretsDaemon
from .handlers import CommandHandlers

__all__ = ["SecretsDaemon", "CommandHandlers"]
