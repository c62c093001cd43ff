"""Error taxonomy for MCP sessions, tool routing and the chat backend."""

from typing import Optional


class MCPHostError(Exception):
    """Base class for every error raised by the host package."""


class ServerConnectionError(MCPHostError, ConnectionError):
    """The MCP server process could not be started or did not complete the handshake."""

    def __init__(self, server: str, reason: str):
        self.server = server
        self.reason = reason
        super().__init__(f"Could not connect to MCP server '{server}': {reason}")


class ProtocolError(MCPHostError):
    """An MCP server answered with a malformed catalog or response."""


class ToolNotFoundError(MCPHostError):
    """No connected server registered a tool with this name."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class SessionNotConnectedError(MCPHostError):
    """The server owning a tool has been disconnected."""

    def __init__(self, server: str):
        self.server = server
        super().__init__(f"Server not connected: {server}")


class ToolInvocationError(MCPHostError):
    """The remote tool reported a failure, or the call itself failed."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class BackendError(MCPHostError):
    """The language-model chat request failed."""


class StartupError(MCPHostError):
    """Connecting the configured servers failed; names the failing server."""

    def __init__(self, server: str, reason: str, cause: Optional[BaseException] = None):
        self.server = server
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to start MCP server '{server}': {reason}")


class IterationCapExceeded(MCPHostError):
    """A turn used all of its model round-trips without a final answer."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Reached the maximum of {max_iterations} model round-trips")
