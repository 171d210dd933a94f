"""
Project Config Resolver

Finds and parses `.imbued` files. A `.imbued` file is TOML:

    backend_type = "env_file"
    valid_depth = 2

    [secrets]
    github_token = "GITHUB_TOKEN"

    [backend_config]
    file_path = "/Users/me/.secrets.env"
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from ..config import CONFIG_FILENAME, DEFAULT_VALID_DEPTH

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ConfigError(Exception):
    """Raised when a config file is missing, unreadable or malformed."""


class ConfigNotFoundError(ConfigError):
    """Raised when no config file exists within the search bound."""


@dataclass
class ImbuedConfig:
    """Parsed contents of a `.imbued` file."""
    secrets: Dict[str, str] = field(default_factory=dict)  # secret name -> env var name
    valid_depth: int = DEFAULT_VALID_DEPTH
    backend_type: str = ""
    backend_config: Dict[str, str] = field(default_factory=dict)
    path: Optional[Path] = None


def find_config(start_dir: PathLike, max_levels: int) -> Path:
    """
    Look for a `.imbued` file in start_dir or up to max_levels parents.

    Args:
        start_dir: Directory to start from
        max_levels: How many parent directories to climb (0 = start_dir only)

    Returns:
        Absolute path of the first config file found

    Raises:
        ConfigNotFoundError: If none exists within the bound
    """
    current = Path(os.path.abspath(start_dir))

    for _ in range(max(max_levels, 0) + 1):
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    raise ConfigNotFoundError(
        f"no {CONFIG_FILENAME} file found within {max_levels} levels up from {start_dir}"
    )


def _string_table(raw: dict, name: str, path: PathLike) -> Dict[str, str]:
    table = raw.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError(f"'{name}' in {path} must be a table")
    result = {}
    for key, value in table.items():
        if isinstance(value, (dict, list)):
            raise ConfigError(f"'{name}.{key}' in {path} must be a plain value")
        result[str(key)] = str(value)
    return result


def load_config(config_path: PathLike) -> ImbuedConfig:
    """
    Load and parse the `.imbued` file at config_path.

    Raises:
        ConfigError: If the file cannot be read or is not valid
    """
    if not config_path:
        raise ConfigError("no config path given")

    path = Path(config_path)
    try:
        with path.open("rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to decode config file: {e}") from e

    valid_depth = raw.get("valid_depth", 0)
    if not isinstance(valid_depth, int) or isinstance(valid_depth, bool):
        raise ConfigError(f"'valid_depth' in {path} must be an integer")
    if valid_depth <= 0:
        valid_depth = DEFAULT_VALID_DEPTH

    backend_type = raw.get("backend_type", "")
    if not isinstance(backend_type, str):
        raise ConfigError(f"'backend_type' in {path} must be a string")

    return ImbuedConfig(
        secrets=_string_table(raw, "secrets", path),
        valid_depth=valid_depth,
        backend_type=backend_type,
        backend_config=_string_table(raw, "backend_config", path),
        path=path,
    )


def get_config_dir(config_path: PathLike) -> Path:
    """Return the directory containing the config file."""
    return Path(config_path).parent


def is_within_valid_depth(config_dir: PathLike, current_dir: PathLike, valid_depth: int) -> bool:
    """Check whether current_dir is config_dir or at most valid_depth levels below it."""
    base = Path(os.path.abspath(config_dir))
    current = Path(os.path.abspath(current_dir))

    try:
        relative = current.relative_to(base)
    except ValueError:
        return False

    return len(relative.parts) <= valid_depth
