"""MCP Host package - connects MCP servers and drives the tool-using chat agent."""

from .agent import AgentConfig, ToolAgent, MAX_STEPS_MESSAGE, format_tool_result
from .context_manager import ContextManager, Message, ToolCallRequest
from .errors import (
    BackendError,
    IterationCapExceeded,
    MCPHostError,
    ProtocolError,
    ServerConnectionError,
    SessionNotConnectedError,
    StartupError,
    ToolInvocationError,
    ToolNotFoundError,
)
from .mcp_host import DiscoveredTool, MCPHost
from .ollama_client import ChatBackend, OllamaClient, OllamaResponse, ToolDefinition
from .tool_session import ToolSession

__all__ = [
    "AgentConfig",
    "ToolAgent",
    "MAX_STEPS_MESSAGE",
    "format_tool_result",
    "ContextManager",
    "Message",
    "ToolCallRequest",
    "BackendError",
    "IterationCapExceeded",
    "MCPHostError",
    "ProtocolError",
    "ServerConnectionError",
    "SessionNotConnectedError",
    "StartupError",
    "ToolInvocationError",
    "ToolNotFoundError",
    "DiscoveredTool",
    "MCPHost",
    "ChatBackend",
    "OllamaClient",
    "OllamaResponse",
    "ToolDefinition",
    "ToolSession",
]
