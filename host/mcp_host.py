"""
MCP Host: connects to several MCP servers and routes tool calls between them.

Features:
- Sequential connection of configured stdio servers
- Merged tool catalog, in server order then per-server catalog order
- Name -> owning server routing built at connect time
- Explicit tool-name collision policy
- Best-effort shutdown of every server
"""

from typing import Any, Callable, Iterable, Optional

from config.server_config import ServerConfig
from config.settings import get_settings
from host.errors import (
    MCPHostError,
    SessionNotConnectedError,
    StartupError,
    ToolNotFoundError,
)
from host.ollama_client import ToolDefinition
from host.tool_session import ToolSession
from shared.logging_config import get_logger


logger = get_logger(__name__)

SessionFactory = Callable[[ServerConfig], Any]


class DiscoveredTool:
    """Tool discovered from MCP server."""

    def __init__(
        self,
        name: str,
        description: Optional[str],
        input_schema: dict,
        server_name: str,
    ):
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self.server_name = server_name

        # Extract required parameters
        self.required_params = input_schema.get("required", [])
        self.properties = input_schema.get("properties", {})

    def to_ollama_tool(self) -> ToolDefinition:
        return ToolDefinition(
            type="function",
            function={
                "name": self.name,
                "description": self.description or "",
                "parameters": self.input_schema or {"type": "object", "properties": {}},
            },
        )

    def __repr__(self) -> str:
        return f"DiscoveredTool(name={self.name!r}, server={self.server_name!r})"


class MCPHost:
    """
    Registry and router for MCP tool servers.

    The host exclusively owns every ToolSession. Tool names are expected to
    be unique across servers; see `collision_policy` for what happens when
    they are not.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        collision_policy: Optional[str] = None,
    ):
        """
        Args:
            session_factory: Builds a session from a ServerConfig (defaults to ToolSession)
            collision_policy: "first" keeps the first registrant of a name and
                drops later duplicates, "error" aborts the connection (defaults to settings)
        """
        settings = get_settings()
        self.session_factory = session_factory or ToolSession
        self.collision_policy = collision_policy or settings.tool_name_collision
        if self.collision_policy not in ("first", "error"):
            raise ValueError(f"Unknown tool name collision policy: {self.collision_policy}")

        self._sessions: dict[str, Any] = {}
        self._tools: list[DiscoveredTool] = []
        self._tool_index: dict[str, DiscoveredTool] = {}

        logger.info("mcp_host_initialized", collision_policy=self.collision_policy)

    @property
    def server_names(self) -> list[str]:
        return list(self._sessions)

    async def connect_server(self, config: ServerConfig) -> list[DiscoveredTool]:
        """
        Connect one server and merge its catalog.

        The session is kept even when listing fails afterwards, so that
        disconnect_all() can reap the process.

        Returns:
            The tools added to the merged catalog

        Raises:
            StartupError: If the server cannot be connected or listed, or
                a tool name collides under the "error" policy
        """
        if config.name in self._sessions:
            raise StartupError(config.name, "a server with this name is already connected")

        session = self.session_factory(config)
        try:
            await session.connect()
        except MCPHostError as e:
            logger.error("server_connection_failed", server=config.name, error=str(e))
            raise StartupError(config.name, str(e), cause=e) from e

        self._sessions[config.name] = session

        try:
            catalog = await session.list_tools()
        except MCPHostError as e:
            logger.error("tool_discovery_failed", server=config.name, error=str(e))
            raise StartupError(config.name, str(e), cause=e) from e

        discovered_tools = [
            DiscoveredTool(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputSchema or {},
                server_name=config.name,
            )
            for tool in catalog
        ]

        if self.collision_policy == "error":
            for discovered in discovered_tools:
                owner = self._tool_index.get(discovered.name)
                if owner is not None:
                    raise StartupError(
                        config.name,
                        f"tool '{discovered.name}' is already provided by server '{owner.server_name}'",
                    )

        added: list[DiscoveredTool] = []
        for discovered in discovered_tools:
            owner = self._tool_index.get(discovered.name)
            if owner is not None:
                logger.warning(
                    "tool_name_collision",
                    tool=discovered.name,
                    kept_server=owner.server_name,
                    dropped_server=config.name,
                )
                continue

            self._tool_index[discovered.name] = discovered
            self._tools.append(discovered)
            added.append(discovered)

        logger.info("server_connected", server=config.name, tools=len(added))
        return added

    async def connect_all(self, configs: Iterable[ServerConfig]) -> None:
        """
        Connect servers one after another in the given order.

        No rollback happens on failure: servers connected so far stay
        open and must be released with disconnect_all().

        Raises:
            StartupError: Naming the first server that failed
        """
        for config in configs:
            await self.connect_server(config)

        logger.info("mcp_host_started", servers=len(self._sessions), tools=len(self._tools))

    def tools(self) -> tuple[DiscoveredTool, ...]:
        """Merged catalog. Not stable across reconnects."""
        return tuple(self._tools)

    def get_tool(self, name: str) -> Optional[DiscoveredTool]:
        return self._tool_index.get(name)

    def tools_by_server(self) -> dict[str, list[DiscoveredTool]]:
        """Merged catalog grouped by owning server, in connection order."""
        grouped: dict[str, list[DiscoveredTool]] = {name: [] for name in self._sessions}
        for tool in self._tools:
            grouped.setdefault(tool.server_name, []).append(tool)
        return grouped

    def to_ollama_tools(self) -> list[ToolDefinition]:
        """Merged catalog in the function-calling format of the chat backend."""
        return [tool.to_ollama_tool() for tool in self._tools]

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]] = None) -> list[Any]:
        """
        Route a call to the server that registered the tool.

        Raises:
            ToolNotFoundError: If no server registered the name
            SessionNotConnectedError: If the owning server is gone
            ToolInvocationError: Propagated unchanged from the session
        """
        tool = self._tool_index.get(name)
        if tool is None:
            logger.error("tool_not_found", tool=name)
            raise ToolNotFoundError(name)

        session = self._sessions.get(tool.server_name)
        if session is None or not session.is_connected:
            logger.error("server_not_connected", server=tool.server_name, tool=name)
            raise SessionNotConnectedError(tool.server_name)

        logger.info("calling_mcp_tool", server=tool.server_name, tool=name)
        return await session.call_tool(name, arguments or {})

    async def disconnect_server(self, name: str) -> bool:
        """
        Disconnect one server and drop its tools.

        Returns:
            True if the server was connected
        """
        session = self._sessions.pop(name, None)
        if session is None:
            return False

        await self._safe_disconnect(name, session)

        self._tools = [tool for tool in self._tools if tool.server_name != name]
        self._tool_index = {tool.name: tool for tool in self._tools}
        return True

    async def disconnect_all(self) -> None:
        """Disconnect every server, continuing past failures. Never raises."""
        logger.info("mcp_host_stopping", servers=len(self._sessions))

        for name, session in list(self._sessions.items()):
            await self._safe_disconnect(name, session)

        self._sessions.clear()
        self._tools = []
        self._tool_index = {}

        logger.info("mcp_host_stopped")

    async def _safe_disconnect(self, name: str, session: Any) -> None:
        try:
            await session.disconnect()
        except Exception as e:
            logger.error("client_close_error", server=name, error=str(e))
