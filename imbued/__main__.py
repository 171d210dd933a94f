"""
imbued daemon entry point.

    python -m imbued                      Start the daemon with defaults
    python -m imbued --auth-duration 900  Grants last 15 minutes
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import ACCESS_LOG_PATH, DAEMON_LOG_PATH, DEFAULT_AUTH_DURATION, SOCKET_PATH
from .core.auth import SecurityPresenceCheck, SimpleAuthenticator
from .core.tracking import FileTracker, TrackingError
from .server import CommandHandlers, SecretsDaemon

logger = logging.getLogger("imbued")


def configure_logging(log_path: Path, quiet: bool = False) -> None:
    """Send daemon diagnostics to log_path (and stderr unless quiet)."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handlers = [logging.FileHandler(log_path)]
    if not quiet:
        handlers.append(logging.StreamHandler())
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers
    )


async def run_daemon(socket_path: Path, log_file: Path, auth_duration: float) -> None:
    tracker = FileTracker(log_file)
    authenticator = SimpleAuthenticator(auth_duration, SecurityPresenceCheck())
    daemon = SecretsDaemon(socket_path, CommandHandlers(tracker, authenticator))

    try:
        await daemon.start()
        await daemon.serve_forever()
    finally:
        await daemon.stop()
        tracker.close()


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="imbued",
        description="Daemon that gates secrets and injects them into shell environments"
    )
    parser.add_argument(
        "--socket",
        type=Path,
        default=SOCKET_PATH,
        help=f"Unix socket path (default: {SOCKET_PATH})"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=ACCESS_LOG_PATH,
        help=f"Access log path (default: {ACCESS_LOG_PATH})"
    )
    parser.add_argument(
        "--auth-duration",
        type=float,
        default=DEFAULT_AUTH_DURATION.total_seconds(),
        help="Seconds an authentication stays valid (default: 3600)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help=f"Only log to {DAEMON_LOG_PATH}"
    )
    args = parser.parse_args()

    configure_logging(DAEMON_LOG_PATH, args.quiet)
    logger.info("Running in server mode")

    try:
        asyncio.run(run_daemon(args.socket, args.log_file, args.auth_duration))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except TrackingError as e:
        logger.error(f"❌ Failed to initialize tracker: {e}")
        return 1
    except OSError as e:
        logger.error(f"❌ Server error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
