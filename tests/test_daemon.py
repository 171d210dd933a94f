import asyncio
import json

import pytest
import pytest_asyncio

from imbued.client import ClientError, send_command
from imbued.core.protocol import Command, complete_message
from imbued.server import CommandHandlers, SecretsDaemon
from tests.conftest import write_config


@pytest_asyncio.fixture
async def daemon(tmp_path, tracker, authenticator):
    d = SecretsDaemon(tmp_path / "d.sock", CommandHandlers(tracker, authenticator))
    await d.start()
    yield d
    await d.stop()


async def raw_exchange(socket_path, payload: bytes) -> bytes:
    """Send raw bytes and read everything until the daemon closes the connection."""
    reader, writer = await asyncio.open_unix_connection(str(socket_path))
    writer.write(payload)
    await writer.drain()
    data = await reader.read()
    writer.close()
    await writer.wait_closed()
    return data


@pytest.mark.asyncio
async def test_unknown_action_then_connection_closes(daemon):
    data = await raw_exchange(daemon.socket_path, b'{"action": "bogus"}\n')

    lines = data.splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0]) == {"success": False, "error": "Unknown action: bogus"}


@pytest.mark.asyncio
async def test_malformed_json_reports_decode_error(daemon):
    data = await raw_exchange(daemon.socket_path, b"{not json\n")
    response = json.loads(data)

    assert response["success"] is False
    assert response["error"].startswith("Failed to decode command: ")


@pytest.mark.asyncio
async def test_missing_action_reports_decode_error(daemon):
    response = json.loads(await raw_exchange(daemon.socket_path, b'{"process_id": "1"}\n'))
    assert response["error"].startswith("Failed to decode command: ")


@pytest.mark.asyncio
async def test_unknown_fields_are_ignored(daemon):
    payload = b'{"action": "check_auth", "process_id": "1", "future_field": 3}\n'
    response = json.loads(await raw_exchange(daemon.socket_path, payload))
    assert response == {"success": True, "data": {"authenticated": "false"}}


@pytest.mark.asyncio
async def test_command_without_trailing_newline_is_answered(daemon):
    reader, writer = await asyncio.open_unix_connection(str(daemon.socket_path))
    writer.write(b'{"action": "check_auth", "process_id": "5"}')
    await writer.drain()

    # Write side stays open; the daemon must answer on the complete object alone
    line = await asyncio.wait_for(reader.readline(), timeout=5)
    writer.close()
    await writer.wait_closed()

    assert json.loads(line) == {"success": True, "data": {"authenticated": "false"}}


@pytest.mark.asyncio
async def test_command_split_across_writes(daemon):
    reader, writer = await asyncio.open_unix_connection(str(daemon.socket_path))
    writer.write(b'{"action": "check')
    await writer.drain()
    await asyncio.sleep(0.05)
    writer.write(b'_auth", "process_id": "5"}\n')
    await writer.drain()

    line = await asyncio.wait_for(reader.readline(), timeout=5)
    writer.close()
    await writer.wait_closed()

    assert json.loads(line)["success"] is True


@pytest.mark.parametrize(
    "buffer, expected",
    [
        (b"", None),
        (b"   ", None),
        (b'{"action": "check', None),
        (b'{"action": "x"}', b'{"action": "x"}'),
        (b'  {"action": "x"}', b'{"action": "x"}'),
        (b'{"action": "x"}\n{"extra": 1}', b'{"action": "x"}'),
        (b"{not json\n", b"{not json"),
        (b'{"k": "caf\xc3', None),
    ],
)
def test_complete_message(buffer, expected):
    assert complete_message(buffer) == expected


@pytest.mark.asyncio
async def test_stale_socket_is_replaced_and_removed_on_stop(tmp_path, tracker, authenticator):
    socket_path = tmp_path / "s.sock"
    socket_path.write_text("stale")

    d = SecretsDaemon(socket_path, CommandHandlers(tracker, authenticator))
    await d.start()
    response = await send_command(socket_path, Command(action="check_auth", process_id="1"))
    assert response.success

    await d.stop()
    assert not socket_path.exists()


@pytest.mark.asyncio
async def test_concurrent_connections(daemon):
    commands = [Command(action="check_auth", process_id=str(i)) for i in range(25)]
    responses = await asyncio.gather(*(send_command(daemon.socket_path, c) for c in commands))

    assert all(r.success for r in responses)
    assert all(r.data == {"authenticated": "false"} for r in responses)


@pytest.mark.asyncio
async def test_authenticate_then_inject_env(daemon, tmp_path, env_file, presence):
    config_path = str(write_config(
        tmp_path / "project", {"github_token": "GITHUB_TOKEN"}, backend_config={"file_path": str(env_file)}
    ))

    denied = await send_command(daemon.socket_path, Command(action="inject_env", config_path=config_path, process_id="77"))
    assert denied.error == "Process is not authenticated"

    auth = await send_command(daemon.socket_path, Command(action="authenticate", config_path=config_path, process_id="77"))
    assert auth.success and auth.output == "Authentication successful"

    env = await send_command(daemon.socket_path, Command(action="inject_env", config_path=config_path, process_id="77"))
    assert env.success
    assert env.data == {"GITHUB_TOKEN": "ghp_abc123"}
    assert presence.calls == ["77"]


@pytest.mark.asyncio
async def test_handler_exception_becomes_failure_response(daemon, monkeypatch):
    async def explode(command):
        raise RuntimeError("boom")

    monkeypatch.setitem(daemon.handlers.handlers, "list_secrets", explode)

    response = await send_command(daemon.socket_path, Command(action="list_secrets"))
    assert response.error == "Internal error handling list_secrets: boom"


@pytest.mark.asyncio
async def test_client_reports_unreachable_daemon(tmp_path):
    with pytest.raises(ClientError, match="failed to connect to server"):
        await send_command(tmp_path / "absent.sock", Command(action="check_auth"))
