"""
imbued Client

Sends a single Command to the daemon and returns its Response.

Usage:
    from imbued.client import send_command
    from imbued.core.protocol import Command

    response = await send_command(SOCKET_PATH, Command(action="check_auth", process_id="4242"))
"""

import asyncio
from pathlib import Path
from typing import Union

from .core.protocol import Command, ProtocolError, Response, decode_response, encode


class ClientError(Exception):
    """Raised when the daemon cannot be reached or replies with garbage."""


async def send_command(socket_path: Union[str, Path], command: Command) -> Response:
    """Connect, send one command, read one response."""
    try:
        reader, writer = await asyncio.open_unix_connection(str(socket_path))
    except OSError as e:
        raise ClientError(f"failed to connect to server: {e}") from e

    try:
        writer.write(encode(command))
        await writer.drain()
        line = await reader.readline()
    except OSError as e:
        raise ClientError(f"failed to talk to server: {e}") from e
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    try:
        return decode_response(line)
    except ProtocolError as e:
        raise ClientError(f"failed to decode response: {e}") from e
