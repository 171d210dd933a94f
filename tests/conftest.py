import json
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from imbued.core.auth import PresenceCheck, SimpleAuthenticator
from imbued.core.secrets import CredentialStore
from imbued.core.tracking import FileTracker


class FakePresenceCheck(PresenceCheck):
    def __init__(self, answer: bool = True, error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.calls: List[str] = []

    async def confirm(self, process_id, secret_names):
        self.calls.append(process_id)
        if self.error:
            raise self.error
        return self.answer


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class MemoryCredentialStore(CredentialStore):
    def __init__(self, items: Optional[Dict[tuple, str]] = None):
        self.items: Dict[tuple, str] = dict(items or {})

    async def get(self, service, account):
        return self.items.get((service, account))

    async def set(self, service, account, secret):
        self.items[(service, account)] = secret

    async def delete(self, service, account):
        return self.items.pop((service, account), None) is not None


def write_config(directory: Path, secrets: Dict[str, str], backend_type: str = "env_file",
                 backend_config: Optional[Dict[str, str]] = None, valid_depth: Optional[int] = None) -> Path:
    """Write a `.imbued` file and return its path."""
    lines = [f'backend_type = "{backend_type}"']
    if valid_depth is not None:
        lines.append(f"valid_depth = {valid_depth}")
    lines.append("")
    lines.append("[secrets]")
    for name, env in secrets.items():
        lines.append(f'{name} = "{env}"')
    lines.append("")
    lines.append("[backend_config]")
    for key, value in (backend_config or {}).items():
        lines.append(f"{key} = {json.dumps(value)}")

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / ".imbued"
    path.write_text("\n".join(lines) + "\n")
    return path


def read_records(path: Path) -> List[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


@pytest.fixture
def presence():
    return FakePresenceCheck()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def authenticator(presence, clock):
    return SimpleAuthenticator(60, presence, clock=clock)


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "logs" / "imbued.log"


@pytest.fixture
def tracker(log_path):
    t = FileTracker(log_path)
    yield t
    t.close()


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / "secrets.env"
    path.write_text(
        "# project secrets\n"
        "github_token=ghp_abc123\n"
        "api_key = 'quoted value'\n"
        "\n"
        "db_password=\"s3cr3t\"\n"
    )
    return path
