"""Lazily connected SSH session used to run remote commands."""

import asyncio
from typing import Optional

import asyncssh

from config.settings import get_settings
from shared.logging_config import get_logger
from servers.ssh.ssh_schemas import ExecResult, SSHConfig

logger = get_logger(__name__)


class SSHError(RuntimeError):
    """The remote host could not be reached or the command failed to run."""


class SSHClient:
    """Keeps one SSH connection open and runs commands over it."""

    def __init__(self, config: SSHConfig, command_timeout: Optional[float] = None):
        """
        Args:
            config: Host and credentials
            command_timeout: Default command timeout in seconds (defaults to settings)
        """
        self.config = config
        self.command_timeout = command_timeout or get_settings().ssh_command_timeout
        self._conn: Optional[asyncssh.SSHClientConnection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """
        Open the connection if it is not open yet.

        Raises:
            SSHError: If the key cannot be read or the host refuses the connection
        """
        if self._conn is not None:
            return

        options = {
            "port": self.config.port,
            "username": self.config.username,
            "known_hosts": str(self.config.known_hosts) if self.config.known_hosts else None,
        }
        if self.config.private_key_path:
            key_path = self.config.private_key_path.expanduser()
            if not key_path.is_file():
                raise SSHError(f"Failed to read private key: {key_path} does not exist")
            options["client_keys"] = [str(key_path)]
            if self.config.passphrase:
                options["passphrase"] = self.config.passphrase
        else:
            options["password"] = self.config.password

        if self.config.known_hosts is None:
            logger.warning("ssh_host_key_not_verified", host=self.config.host)

        logger.info("ssh_connecting", target=self.config.target)
        try:
            self._conn = await asyncssh.connect(self.config.host, **options)
        except (OSError, asyncssh.Error) as e:
            raise SSHError(f"SSH connection to {self.config.target} failed: {e}") from e

    async def exec(self, command: str, timeout: Optional[float] = None) -> ExecResult:
        """
        Run a shell command on the remote host.

        A non-zero exit status is returned, not raised.

        Args:
            command: Shell command line
            timeout: Seconds to wait for completion (defaults to command_timeout)

        Raises:
            SSHError: On connection failure or timeout
        """
        if not command or not command.strip():
            raise SSHError("command is required")

        await self.connect()
        timeout = timeout or self.command_timeout
        logger.debug("ssh_exec", target=self.config.target, command=command)

        try:
            result = await asyncio.wait_for(self._conn.run(command, check=False), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SSHError(f"Command execution timed out after {timeout}s") from e
        except (OSError, asyncssh.Error) as e:
            # drop the broken connection so the next call reconnects
            await self.disconnect()
            raise SSHError(f"Command execution failed: {e}") from e

        return ExecResult(
            exit_code=result.exit_status if result.exit_status is not None else -1,
            stdout=_as_text(result.stdout),
            stderr=_as_text(result.stderr),
        )

    async def disconnect(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is None:
            return
        conn.close()
        await conn.wait_closed()
        logger.info("ssh_disconnected", target=self.config.target)


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
