"""
Shared subprocess utilities for imbued.

Provides a single way to run external tools (the 1Password CLI, the macOS
`security` tool) without blocking the daemon's event loop.
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


async def run_command(
    args: List[str],
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None
) -> Tuple[bool, str]:
    """
    Execute an external command without a shell.

    Args:
        args: Program and arguments
        env: Extra environment variables, merged over the daemon's environment
        timeout: Timeout in seconds (default: wait indefinitely)

    Returns:
        Tuple of (success, output). Output is stdout on success and stderr
        (or a description of the failure) otherwise.
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=full_env
        )
    except FileNotFoundError:
        return False, f"{args[0]} not found"
    except OSError as e:
        return False, f"failed to start {args[0]}: {e}"

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return False, f"Command timed out after {timeout}s"

    if process.returncode == 0:
        return True, stdout.decode(errors="replace").strip()

    output = stderr.decode(errors="replace").strip()
    logger.debug(f"{args[0]} exited with code {process.returncode}")
    return False, output or f"exit code: {process.returncode}"
