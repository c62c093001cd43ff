import asyncio
import json
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from servers.ssh import server_ssh, ssh_client
from servers.ssh.ssh_client import SSHClient, SSHError
from servers.ssh.ssh_schemas import SSHConfig


class FakeConnection:
    def __init__(self, results=None, delay=0):
        self.results = results or {}
        self.delay = delay
        self.commands = []
        self.closed = False

    async def run(self, command, check=False):
        self.commands.append(command)
        if self.delay:
            await asyncio.sleep(self.delay)
        exit_status, stdout, stderr = self.results.get(command, (0, f"ran {command}\n", ""))
        return SimpleNamespace(exit_status=exit_status, stdout=stdout, stderr=stderr)

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass


@pytest.fixture
def fake_ssh(monkeypatch):
    """Replaces asyncssh.connect and records how it was called."""
    connects = []
    connection = FakeConnection(results={"false": (1, "", "failed\n")})

    async def connect(host, **options):
        connects.append((host, options))
        return connection

    monkeypatch.setattr(ssh_client.asyncssh, "connect", connect)
    return connection, connects


def password_config(**overrides):
    values = {"host": "192.168.1.100", "username": "pi", "password": "raspberry"}
    values.update(overrides)
    return SSHConfig(**values)


def test_config_requires_password_or_key():
    with pytest.raises(ValidationError, match="Either password or private_key_path"):
        SSHConfig(host="pi.local", username="pi")

    assert password_config().target == "pi@192.168.1.100:22"


def test_exec_connects_once_and_reuses_connection(fake_ssh):
    connection, connects = fake_ssh
    client = SSHClient(password_config(port=2222), command_timeout=5)

    async def scenario():
        first = await client.exec("uptime")
        second = await client.exec("false")
        await client.disconnect()
        return first, second

    first, second = asyncio.run(scenario())

    assert first.exit_code == 0
    assert first.stdout == "ran uptime\n"
    assert (second.exit_code, second.stderr) == (1, "failed\n")
    assert connection.commands == ["uptime", "false"]
    assert len(connects) == 1
    host, options = connects[0]
    assert host == "192.168.1.100"
    assert options["port"] == 2222
    assert options["password"] == "raspberry"
    assert options["known_hosts"] is None
    assert connection.closed
    assert not client.is_connected


def test_exec_uses_private_key(fake_ssh, tmp_path):
    _, connects = fake_ssh
    key = tmp_path / "id_ed25519"
    key.write_text("key")
    client = SSHClient(
        SSHConfig(host="pi.local", username="pi", private_key_path=key, passphrase="secret"),
        command_timeout=5,
    )

    asyncio.run(client.exec("hostname"))

    _, options = connects[0]
    assert options["client_keys"] == [str(key)]
    assert options["passphrase"] == "secret"
    assert "password" not in options


def test_missing_private_key_is_reported(fake_ssh, tmp_path):
    _, connects = fake_ssh
    client = SSHClient(SSHConfig(host="pi.local", username="pi", private_key_path=tmp_path / "nope"))

    with pytest.raises(SSHError, match="Failed to read private key"):
        asyncio.run(client.exec("hostname"))
    assert connects == []


def test_exec_timeout(fake_ssh):
    connection, _ = fake_ssh
    connection.delay = 1
    client = SSHClient(password_config(), command_timeout=5)

    with pytest.raises(SSHError, match="timed out after 0.05s"):
        asyncio.run(client.exec("sleep 10", timeout=0.05))


def test_empty_command_is_rejected():
    with pytest.raises(SSHError, match="command is required"):
        asyncio.run(SSHClient(password_config()).exec("   "))


def test_exec_tool_returns_json_and_converts_milliseconds(fake_ssh, monkeypatch):
    connection, _ = fake_ssh
    client = SSHClient(password_config(), command_timeout=5)
    seen = {}
    original_exec = client.exec

    async def recording_exec(command, timeout=None):
        seen["timeout"] = timeout
        return await original_exec(command, timeout=timeout)

    client.exec = recording_exec
    monkeypatch.setattr(server_ssh, "ssh_client", client)

    output = json.loads(asyncio.run(server_ssh.exec_command("df -h", timeout=30000)))

    assert output == {"exitCode": 0, "stdout": "ran df -h\n", "stderr": ""}
    assert seen["timeout"] == 30
    assert connection.commands == ["df -h"]


def test_exec_tool_requires_command_and_configuration(monkeypatch):
    monkeypatch.setattr(server_ssh, "ssh_client", None)

    with pytest.raises(ValueError, match="command is required"):
        asyncio.run(server_ssh.exec_command(""))
    with pytest.raises(RuntimeError, match="not configured"):
        asyncio.run(server_ssh.exec_command("uptime"))


def test_cli_arguments_build_config():
    args = server_ssh.parse_args(
        ["--host", "10.0.0.5", "--username", "admin", "--key", "~/.ssh/id_rsa", "--disable-resources"]
    )
    config = server_ssh.build_config(args)

    assert args.disable_resources is True
    assert config.port == 22
    assert str(config.private_key_path) == "~/.ssh/id_rsa"


def test_network_troubleshooting_resource_is_markdown():
    assert server_ssh.network_troubleshooting_guide().startswith("# Network Troubleshooting Guide")
