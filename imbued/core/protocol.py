"""
Daemon Wire Protocol

One JSON Command from the client (newline-terminated, or a single complete
JSON object), one newline-terminated JSON Response from the daemon, then the
connection closes.
"""

import json
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class ProtocolError(Exception):
    """Raised when a command or response cannot be decoded."""


class Action(str, Enum):
    """Actions understood by the daemon."""
    CHECK_AUTH = "check_auth"
    AUTHENTICATE = "authenticate"
    GET_SECRET = "get_secret"
    LIST_SECRETS = "list_secrets"
    INJECT_ENV = "inject_env"
    CLEAN_ENV = "clean_env"
    SHOW_CONFIG = "show_config"
    FIND_CONFIG = "find_config"
    STORE_SECRETS = "store_secrets"


class Command(BaseModel):
    """
    A single client-to-daemon request.

    Only `action` is required; the other fields are read by the handler
    for that action and ignored otherwise.
    """
    action: str
    config_path: Optional[str] = None
    secret_name: Optional[str] = None
    process_id: Optional[str] = None
    max_levels: int = 0
    current_dir: Optional[str] = None
    environment: Dict[str, str] = Field(default_factory=dict)
    backend_type: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Response(BaseModel):
    """The daemon's single reply to a Command."""
    success: bool
    error: Optional[str] = None
    data: Optional[Dict[str, str]] = None
    output: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _failure_has_error(self) -> "Response":
        if not self.success and not self.error:
            raise ValueError("a failed response must carry an error message")
        return self

    @classmethod
    def ok(cls, data: Optional[Dict[str, str]] = None, output: Optional[str] = None) -> "Response":
        return cls(success=True, data=data, output=output)

    @classmethod
    def fail(cls, error: str) -> "Response":
        return cls(success=False, error=error)


_json_decoder = json.JSONDecoder()


def complete_message(buffer: bytes) -> Optional[bytes]:
    """
    Return the bytes of the first complete message in buffer, or None if more
    input is needed.

    A message ends at the first newline, or as soon as the buffer holds one
    complete JSON value (for clients that do not send a trailing newline).
    """
    newline = buffer.find(b"\n")
    if newline >= 0:
        return buffer[:newline]

    try:
        text = buffer.decode("utf-8").lstrip()
    except UnicodeDecodeError:
        return None
    if not text:
        return None

    try:
        _, end = _json_decoder.raw_decode(text)
    except json.JSONDecodeError:
        return None
    return text[:end].encode("utf-8")


def _decode(line: bytes, model):
    text = line.decode("utf-8", errors="strict").strip()
    if not text:
        raise ProtocolError("empty message")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(str(e)) from e
    if not isinstance(payload, dict):
        raise ProtocolError(f"expected a JSON object, got {type(payload).__name__}")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolError(str(e)) from e


def decode_command(line: bytes) -> Command:
    """
    Decode one serialized Command.

    Raises:
        ProtocolError: If the bytes are not a JSON object with a valid shape
    """
    try:
        return _decode(line, Command)
    except UnicodeDecodeError as e:
        raise ProtocolError(f"invalid UTF-8: {e}") from e


def decode_response(line: bytes) -> Response:
    """Decode one serialized Response."""
    try:
        return _decode(line, Response)
    except UnicodeDecodeError as e:
        raise ProtocolError(f"invalid UTF-8: {e}") from e


def encode(message: BaseModel) -> bytes:
    """Serialize a Command or Response as a single JSON line."""
    return message.model_dump_json(exclude_none=True).encode("utf-8") + b"\n"
