"""Process authentication: time-bounded grants gated by a user presence check."""

from .authenticator import Authenticator, SimpleAuthenticator
from .presence import PresenceCheck, SecurityPresenceCheck

__all__ = [
    "Authenticator",
    "SimpleAuthenticator",
    "PresenceCheck",
    "SecurityPresenceCheck",
]
