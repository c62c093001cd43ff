"""A single stdio connection to an MCP server process."""

import asyncio
from typing import Any, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp import types

from config.server_config import ServerConfig
from config.settings import get_settings
from host.errors import (
    MCPHostError,
    ProtocolError,
    ServerConnectionError,
    SessionNotConnectedError,
    ToolInvocationError,
)
from shared.logging_config import get_logger

logger = get_logger(__name__)


class ToolSession:
    """
    Owns one MCP server child process and its protocol session.

    The process is spawned by connect() and terminated by disconnect().
    Calls are never retried here; failures surface to the caller.
    """

    def __init__(
        self,
        config: ServerConfig,
        connect_timeout: Optional[float] = None,
        call_timeout: Optional[float] = None,
    ):
        """
        Args:
            config: Command line and environment of the server
            connect_timeout: Handshake timeout in seconds (defaults to settings)
            call_timeout: Per call timeout in seconds (defaults to settings, None waits forever)
        """
        settings = get_settings()
        self.config = config
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.mcp_connect_timeout
        self.call_timeout = call_timeout if call_timeout is not None else settings.mcp_call_timeout
        self._client_info = types.Implementation(
            name=settings.mcp_client_name,
            version=settings.mcp_client_version,
        )

        self._session: Optional[ClientSession] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = asyncio.Event()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """
        Spawn the server and perform the MCP initialize handshake.

        The stdio transport and the protocol session live in a task owned by
        this object, so sessions can be closed in any order.

        Raises:
            ServerConnectionError: If the process cannot start or the handshake fails
        """
        if self.is_connected:
            return

        logger.info("connecting_mcp_server", server=self.name, command=self.config.command)

        server_params = StdioServerParameters(
            command=self.config.command,
            args=self.config.args,
            env=self.config.build_env(),
        )

        ready: asyncio.Future = asyncio.get_running_loop().create_future()
        self._closing = asyncio.Event()
        self._task = asyncio.create_task(
            self._run_session(server_params, ready), name=f"mcp-session-{self.name}"
        )

        try:
            await ready
        except asyncio.CancelledError:
            self._task.cancel()
            await self._finish_task()
            raise
        except Exception as e:
            await self._finish_task()
            cause = _root_cause(e)
            if isinstance(cause, asyncio.TimeoutError):
                raise ServerConnectionError(
                    self.name, f"handshake timed out after {self.connect_timeout}s"
                ) from e
            raise ServerConnectionError(self.name, str(cause) or type(cause).__name__) from e

        logger.info("mcp_server_connected", server=self.name)

    async def _run_session(self, server_params: StdioServerParameters, ready: asyncio.Future) -> None:
        """Hold the transport open until disconnect() is requested."""
        try:
            async with stdio_client(server_params) as (read, write):
                async with ClientSession(read, write, client_info=self._client_info) as session:
                    if self.connect_timeout:
                        await asyncio.wait_for(session.initialize(), timeout=self.connect_timeout)
                    else:
                        await session.initialize()

                    self._session = session
                    if not ready.done():
                        ready.set_result(None)
                    await self._closing.wait()
        except Exception as e:
            if not ready.done():
                ready.set_exception(e)
            else:
                logger.error("mcp_server_close_error", server=self.name, error=str(e))
        finally:
            self._session = None
            if not ready.done():
                ready.set_exception(ServerConnectionError(self.name, "session task ended before the handshake"))

    async def list_tools(self) -> list[types.Tool]:
        """
        Fetch the server's tool catalog.

        Raises:
            SessionNotConnectedError: If connect() has not succeeded
            ProtocolError: If the response is malformed
        """
        session = self._require_session()
        try:
            result = await session.list_tools()
        except MCPHostError:
            raise
        except Exception as e:
            raise ProtocolError(f"Invalid tool list from '{self.name}': {e}") from e

        tools = getattr(result, "tools", None)
        if tools is None:
            raise ProtocolError(f"Tool list from '{self.name}' has no 'tools' field")
        for tool in tools:
            if not getattr(tool, "name", None):
                raise ProtocolError(f"Tool without a name in catalog of '{self.name}'")

        logger.debug("mcp_tools_listed", server=self.name, tools=[t.name for t in tools])
        return list(tools)

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]] = None) -> list[Any]:
        """
        Invoke a tool and return its content blocks.

        Args:
            name: Tool name
            arguments: Tool arguments matching its input schema

        Returns:
            Ordered content blocks of the result

        Raises:
            SessionNotConnectedError: If connect() has not succeeded
            ToolInvocationError: If the tool reports an error or the call fails
        """
        session = self._require_session()
        logger.debug("mcp_tool_call", server=self.name, tool=name)

        try:
            call = session.call_tool(name, arguments or {})
            if self.call_timeout:
                result = await asyncio.wait_for(call, timeout=self.call_timeout)
            else:
                result = await call
        except asyncio.TimeoutError as e:
            raise ToolInvocationError(name, f"Tool '{name}' timed out after {self.call_timeout}s") from e
        except Exception as e:
            raise ToolInvocationError(name, str(e) or type(e).__name__) from e

        if result.isError:
            message = "\n".join(
                block.text for block in result.content if isinstance(block, types.TextContent)
            ) or f"Tool '{name}' reported an error"
            raise ToolInvocationError(name, message)

        return list(result.content)

    async def disconnect(self) -> None:
        """Close the session and terminate the process. Never raises."""
        if self._task is None:
            return

        self._session = None
        await self._finish_task()
        logger.info("mcp_server_disconnected", server=self.name)

    async def _finish_task(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return

        self._closing.set()
        await asyncio.wait({task})
        if task.cancelled():
            logger.warning("mcp_server_task_cancelled", server=self.name)
        elif task.exception() is not None:
            logger.error("mcp_server_close_error", server=self.name, error=str(task.exception()))

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise SessionNotConnectedError(self.name)
        return self._session


def _root_cause(error: BaseException) -> BaseException:
    """Unwrap single-member exception groups raised by the transport's task groups."""
    while isinstance(getattr(error, "exceptions", None), tuple) and len(error.exceptions) == 1:
        error = error.exceptions[0]
    return error
