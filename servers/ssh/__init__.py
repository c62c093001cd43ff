"""SSH MCP Server - remote command execution."""

from servers.ssh.ssh_client import SSHClient, SSHError
from servers.ssh.ssh_schemas import ExecResult, SSHConfig

__all__ = [
    "SSHClient",
    "SSHError",
    "ExecResult",
    "SSHConfig",
]
