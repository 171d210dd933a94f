"""
Env File Secrets Backend

Reads KEY=VALUE pairs from a local dotenv-style file.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import BackendError, SecretNotFoundError
from ..interface import SecretsBackend

logger = logging.getLogger(__name__)


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] in ("'", '"') and value[0] == value[-1]:
        return value[1:-1]
    return value


def _parse_line(line: str) -> Optional[tuple]:
    """Return (key, value) for an assignment line, None for blanks, comments and junk."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    return key.strip(), _unquote(value.strip())


def _breaks_lines(text: str) -> bool:
    # Matches every separator str.splitlines() honours when the file is read back
    return len(f"x{text}x".splitlines()) != 1


def _format_key(key: str) -> str:
    if not key or key != key.strip() or "=" in key or key.startswith("#") or _breaks_lines(key):
        raise BackendError(f"invalid env file key: {key!r}")
    return key


def _format_value(key: str, value: str) -> str:
    """Render value so that _parse_line reads back exactly the same string."""
    if _breaks_lines(value):
        raise BackendError(f"value for {key} cannot contain line breaks")
    # Quote only when the parser would otherwise alter the value
    if value == value.strip() and _unquote(value) == value:
        return value
    for quote in ('"', "'"):
        if quote not in value:
            return f"{quote}{value}{quote}"
    raise BackendError(f"value for {key} cannot be stored: it needs quoting but contains both quote characters")


class EnvFileBackend(SecretsBackend):
    """
    Local key-value file backend.

    Config:
        file_path: Path to the env file (required)
    """

    backend_type = "env_file"
    required_keys = ["file_path"]

    def __init__(self):
        super().__init__()
        self.file_path: Optional[Path] = None
        self._secrets: Dict[str, str] = {}

    async def initialize(self, config: Dict[str, str]) -> None:
        self._require(config)
        self.config = config
        self.file_path = Path(config["file_path"]).expanduser()

        try:
            text = self.file_path.read_text()
        except OSError as e:
            raise BackendError(f"failed to open env file: {e}") from e

        self._secrets = {}
        for line in text.splitlines():
            parsed = _parse_line(line)
            if parsed:
                self._secrets[parsed[0]] = parsed[1]

        self.initialized = True
        logger.debug(f"Loaded {len(self._secrets)} entries from {self.file_path}")

    async def get_secret(self, key: str) -> str:
        self._ensure_initialized()
        if key not in self._secrets:
            raise SecretNotFoundError(f"secret not found: {key}")
        return self._secrets[key]

    async def store_secrets(self, secrets: Dict[str, str]) -> None:
        """
        Add or replace entries and rewrite the file.

        Existing lines (including comments) are kept in place; replaced keys
        are updated where they stand and new keys are appended. The file is
        swapped in atomically.

        Raises:
            BackendError: If a key or value cannot be written so that it reads
                back unchanged; nothing is written in that case
        """
        self._ensure_initialized()
        if not secrets:
            return

        rendered = {_format_key(key): _format_value(key, value) for key, value in secrets.items()}

        lines: List[str] = self.file_path.read_text().splitlines() if self.file_path.exists() else []

        written = set()
        for i, line in enumerate(lines):
            parsed = _parse_line(line)
            if parsed and parsed[0] in rendered:
                key = parsed[0]
                lines[i] = f"{key}={rendered[key]}"
                written.add(key)

        for key, value in rendered.items():
            if key not in written:
                lines.append(f"{key}={value}")

        self._write_atomic("\n".join(lines) + "\n")
        self._secrets.update(secrets)
        logger.info(f"✅ Stored {len(secrets)} secret(s) in {self.file_path}")

    def _write_atomic(self, content: str) -> None:
        directory = self.file_path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.file_path.name}.")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(content)
                if self.file_path.exists():
                    os.chmod(tmp_name, self.file_path.stat().st_mode & 0o777)
                else:
                    os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise BackendError(f"failed to write env file: {e}") from e

    async def close(self) -> None:
        self._secrets = {}
        await super().close()
