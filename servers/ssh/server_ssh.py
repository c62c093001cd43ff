"""MCP Server that runs shell commands on a remote host over SSH."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context
from mcp.server.session import ServerSession
from pydantic import ValidationError

from config.settings import get_settings
from shared.logging_config import get_logger
from servers.ssh.ssh_client import SSHClient, SSHError
from servers.ssh.ssh_schemas import SSHConfig

logger = get_logger(__name__)

DOCS_DIR = Path(__file__).parent / "docs"
TROUBLESHOOTING_URI = "file:///network-troubleshooting"

# Create MCP server
mcp = FastMCP(
    name="SSH",
    instructions="Executes shell commands on a remote server via SSH",
)

# Set by SSHServer before the server starts
ssh_client: Optional[SSHClient] = None


@mcp.tool(name="exec")
async def exec_command(
    command: str,
    timeout: Optional[int] = None,
    ctx: Context[ServerSession, None] = None,
) -> str:
    """
    Execute a shell command on the remote server.

    Args:
        command: The shell command to execute
        timeout: Timeout in milliseconds (default: 60000)
    Returns:
        JSON object with exitCode, stdout and stderr
    """
    if not command or not command.strip():
        raise ValueError("command is required")
    if ssh_client is None:
        raise RuntimeError("SSH client is not configured")

    if ctx is not None:
        await ctx.info(f"Running on {ssh_client.config.target}: {command}")

    try:
        result = await ssh_client.exec(command, timeout=timeout / 1000 if timeout else None)
    except SSHError as e:
        logger.error("ssh_exec_failed", command=command, error=str(e))
        raise

    return result.to_json()


def network_troubleshooting_guide() -> str:
    return (DOCS_DIR / "network-troubleshooting.md").read_text(encoding="utf-8")


def register_resources() -> None:
    """Expose the troubleshooting guide. Skipped when web search is available."""
    mcp.resource(
        TROUBLESHOOTING_URI,
        name="Network Troubleshooting Guide",
        description="Linux network troubleshooting commands and workflows",
        mime_type="text/markdown",
    )(network_troubleshooting_guide)


class SSHServer:
    """Wrapper class for the SSH MCP Server."""

    def __init__(self, config: SSHConfig, disable_resources: bool = False):
        global ssh_client
        self.mcp = mcp
        self.ssh_client = SSHClient(config)
        ssh_client = self.ssh_client
        if not disable_resources:
            register_resources()
        logger.info("ssh_server_initialized", target=config.target, resources=not disable_resources)

    async def stop(self):
        """Close the SSH connection."""
        await self.ssh_client.disconnect()
        logger.info("ssh_server_stopped")

    def get_mcp_server(self) -> FastMCP:
        """Get the FastMCP server instance."""
        return self.mcp


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SSH MCP Server - Execute commands on remote servers via SSH",
        epilog="Example: python -m servers.ssh.server_ssh --host 192.168.1.100 --username pi --key ~/.ssh/id_rsa",
    )
    parser.add_argument("--host", required=True, help="Remote host IP or hostname")
    parser.add_argument("--port", type=int, default=22, help="SSH port (default: 22)")
    parser.add_argument("--username", required=True, help="SSH username")
    parser.add_argument("--password", help="SSH password")
    parser.add_argument("--key", dest="private_key_path", help="Path to SSH private key")
    parser.add_argument("--passphrase", help="Passphrase for private key")
    parser.add_argument("--known-hosts", help="known_hosts file used to verify the host key")
    parser.add_argument(
        "--disable-resources",
        action="store_true",
        help="Disable documentation resources (use when web search is available)",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SSHConfig:
    return SSHConfig(
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        private_key_path=args.private_key_path,
        passphrase=args.passphrase,
        known_hosts=args.known_hosts,
    )


if __name__ == "__main__":
    import asyncio
    from shared.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.mcp_log_level, settings.mcp_json_logs)

    args = parse_args()
    try:
        config = build_config(args)
    except ValidationError as e:
        print(f"Error: {e.errors()[0]['msg']}", file=sys.stderr)
        print("Use --help for usage information", file=sys.stderr)
        sys.exit(1)

    async def run_server():
        """Run the MCP server in stdio mode."""
        server = SSHServer(config, disable_resources=args.disable_resources)
        try:
            await mcp.run_stdio_async()
        finally:
            await server.stop()

    asyncio.run(run_server())
