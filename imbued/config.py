"""
Shared configuration constants for imbued.

Import from here to avoid duplication across the daemon, client and backends.
"""

import os
from datetime import timedelta
from pathlib import Path

# Base paths
IMBUED_HOME = Path(os.getenv("IMBUED_HOME", str(Path.home() / ".imbued")))
LOGS_DIR = IMBUED_HOME / "logs"

# Daemon
SOCKET_PATH = IMBUED_HOME / "imbued.sock"
ACCESS_LOG_PATH = LOGS_DIR / "imbued.log"
DAEMON_LOG_PATH = LOGS_DIR / "info.log"

# Project config discovery
CONFIG_FILENAME = ".imbued"
DEFAULT_MAX_LEVELS = 3
DEFAULT_VALID_DEPTH = 1

# Authentication
DEFAULT_AUTH_DURATION = timedelta(hours=1)
PRESENCE_PROMPT = "imbued would like to use TouchID authentication to hydrate your environment"

# OS credential store service names
KEYCHAIN_SERVICE = "imbued"
ONEPASS_SERVICE = "com.novacove.imbued.onepass"
