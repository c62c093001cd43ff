"""Tool-using chat agent: alternates model replies and MCP tool calls."""

import json
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from host.context_manager import ContextManager, Message, ToolCallRequest
from host.errors import IterationCapExceeded
from host.mcp_host import MCPHost
from host.ollama_client import ChatBackend
from shared.logging_config import get_logger
from shared.utils import truncate


logger = get_logger(__name__)

MAX_STEPS_MESSAGE = (
    "I apologize, but I reached the maximum number of steps. Please try a simpler request."
)
TOOL_ERROR_PREFIX = "Error executing tool: "


class AgentConfig(BaseModel):
    """Agent settings, fixed for the agent's lifetime."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., min_length=1, description="Model identifier")
    system_prompt: Optional[str] = Field(default=None)
    max_iterations: int = Field(default=10, ge=1, description="Model round-trips allowed per turn")


def format_tool_result(content: Sequence[Any]) -> str:
    """
    Flatten MCP content blocks into the text of a tool message.

    Text blocks are joined with newlines; any other block is rendered as
    sorted-key JSON.
    """
    parts = []
    for block in content:
        data = block.model_dump(mode="json", exclude_none=True) if hasattr(block, "model_dump") else block
        if isinstance(data, dict) and data.get("type") == "text":
            parts.append(str(data.get("text", "")))
        else:
            parts.append(json.dumps(data, sort_keys=True, default=str))
    return "\n".join(parts)


class ToolAgent:
    """
    Drives one bounded tool-use loop per user turn.

    Each turn appends the user message, then repeatedly asks the backend
    for a reply. Replies are appended before they are inspected; tool calls
    they request are executed in order and their results appended as tool
    messages. The turn ends on a reply without tool calls, or with
    MAX_STEPS_MESSAGE once max_iterations round-trips are used up.

    Only one chat() may be in flight per agent.
    """

    def __init__(self, host: MCPHost, backend: ChatBackend, config: AgentConfig):
        self.host = host
        self.backend = backend
        self.config = config
        self.context = ContextManager(system_message=config.system_prompt)
        self.iterations = 0

        logger.info(
            "agent_initialized",
            model=config.model,
            max_iterations=config.max_iterations,
            has_system_prompt=bool(config.system_prompt),
        )

    async def chat(self, user_message: str) -> str:
        """
        Run one turn.

        Returns:
            The final assistant content, or MAX_STEPS_MESSAGE

        Raises:
            BackendError: If the model call fails; tool failures never raise
        """
        self.context.add_message("user", user_message)
        self.iterations = 0

        try:
            return await self._run_turn()
        except IterationCapExceeded as e:
            logger.warning("max_iterations_reached", max_iterations=e.max_iterations)
            return MAX_STEPS_MESSAGE

    async def _run_turn(self) -> str:
        while self.iterations < self.config.max_iterations:
            self.iterations += 1
            logger.debug("agent_iteration", iteration=self.iterations)

            response = await self.backend.chat(
                self.context.messages(),
                self.host.to_ollama_tools(),
                model=self.config.model,
            )
            self.context.add(response.to_message())

            if not response.tool_calls:
                logger.info("turn_completed", iterations=self.iterations)
                return response.content or ""

            logger.info("tool_calls_requested", count=len(response.tool_calls), iteration=self.iterations)
            for call in response.tool_calls:
                await self._execute_tool_call(call)

        raise IterationCapExceeded(self.config.max_iterations)

    async def _execute_tool_call(self, call: ToolCallRequest) -> Message:
        logger.info("calling_tool", tool=call.name, arguments=call.arguments)

        try:
            content = await self.host.call_tool(call.name, call.arguments)
        except Exception as e:
            logger.warning("tool_error", tool=call.name, error=str(e))
            return self.context.add_message("tool", f"{TOOL_ERROR_PREFIX}{e}", tool_name=call.name)

        result = format_tool_result(content)
        logger.info("tool_result", tool=call.name, result=truncate(result))
        return self.context.add_message("tool", result, tool_name=call.name)

    def history(self) -> list[Message]:
        return self.context.messages()

    def clear_history(self) -> None:
        self.context.clear()
