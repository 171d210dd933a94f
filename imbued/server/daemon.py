"""
imbued Daemon

Listens on a Unix socket. Every connection carries exactly one Command
and receives exactly one Response, then the connection is closed.

A command is complete at the first newline, once a whole JSON object has
arrived, or when the client closes its write side, whichever comes first.
Responses are always newline-terminated.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from ..core.protocol import Command, ProtocolError, Response, complete_message, decode_command, encode
from .handlers import CommandHandlers

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096
MAX_COMMAND_SIZE = 1024 * 1024


class SecretsDaemon:
    """
    Unix socket server dispatching commands to CommandHandlers.

    Usage:
        daemon = SecretsDaemon(SOCKET_PATH, handlers)
        await daemon.start()
        await daemon.serve_forever()
    """

    def __init__(self, socket_path: Union[str, Path], handlers: CommandHandlers):
        self.socket_path = Path(socket_path)
        self.handlers = handlers
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self) -> None:
        """Bind the socket, replacing any stale socket file."""
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        if self.socket_path.exists() or self.socket_path.is_symlink():
            self.socket_path.unlink()
            logger.info(f"Removed stale socket: {self.socket_path}")

        self._server = await asyncio.start_unix_server(self._handle_connection, path=str(self.socket_path))
        logger.info(f"✅ Server listening on socket: {self.socket_path}")

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        await self._server.serve_forever()

    async def stop(self) -> None:
        """Stop accepting connections and remove the socket file."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        self.socket_path.unlink(missing_ok=True)
        logger.info("Server stopped")

    async def _read_command(self, reader: asyncio.StreamReader) -> Command:
        buffer = b""
        while True:
            message = complete_message(buffer)
            if message is not None:
                return decode_command(message)
            if len(buffer) > MAX_COMMAND_SIZE:
                raise ProtocolError(f"command exceeds {MAX_COMMAND_SIZE} bytes")

            chunk = await reader.read(READ_CHUNK_SIZE)
            if not chunk:
                # Client closed its write side; decode whatever arrived
                return decode_command(buffer)
            buffer += chunk

    async def dispatch(self, command: Command) -> Response:
        """Route a decoded command to its handler."""
        handler = self.handlers.get_handler(command.action)
        if handler is None:
            return Response.fail(f"Unknown action: {command.action}")

        try:
            return await handler(command)
        except Exception as e:
            logger.exception(f"❌ Handler for {command.action} failed")
            return Response.fail(f"Internal error handling {command.action}: {e}")

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            try:
                command = await self._read_command(reader)
            except ProtocolError as e:
                logger.warning(f"⚠️ Failed to decode command: {e}")
                response = Response.fail(f"Failed to decode command: {e}")
            else:
                logger.info(f"Received command: {command.action} (process {command.process_id or '-'})")
                response = await self.dispatch(command)

            writer.write(encode(response))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            logger.warning(f"⚠️ Connection error: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
