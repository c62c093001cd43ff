"""Conversation history for a single agent."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from shared.logging_config import get_logger


logger = get_logger(__name__)

Role = Literal["system", "user", "assistant", "tool"]


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model."""

    name: str = Field(..., description="Tool name")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    def to_llm(self) -> dict[str, Any]:
        return {"function": {"name": self.name, "arguments": self.arguments}}


class Message(BaseModel):
    """Individual message in conversation."""

    role: Role = Field(..., description="Message role: system, user, assistant, or tool")
    content: str = Field(default="", description="Message content")
    tool_calls: Optional[list[ToolCallRequest]] = Field(default=None, description="Tool calls requested by the assistant")
    tool_name: Optional[str] = Field(default=None, description="Tool that produced a tool message")
    timestamp: datetime = Field(default_factory=datetime.now)

    def to_llm(self) -> dict[str, Any]:
        """Wire format expected by the chat backend."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [call.to_llm() for call in self.tool_calls]
        if self.tool_name:
            data["tool_name"] = self.tool_name
        return data


class ContextManager:
    """
    Append-only conversation history.

    A system message, when given, is always the first element and
    survives clear().
    """

    def __init__(self, system_message: Optional[str] = None):
        self._system: Optional[Message] = (
            Message(role="system", content=system_message) if system_message else None
        )
        self._messages: list[Message] = [self._system] if self._system else []

        logger.debug("context_created", has_system_message=self._system is not None)

    @property
    def system_message(self) -> Optional[Message]:
        return self._system

    def __len__(self) -> int:
        return len(self._messages)

    def add(self, message: Message) -> Message:
        if message.role == "system":
            raise ValueError("System message can only be set when the context is created")
        self._messages.append(message)

        logger.debug(
            "message_added",
            role=message.role,
            content_length=len(message.content),
            message_count=len(self._messages),
        )
        return message

    def add_message(
        self,
        role: Role,
        content: str,
        tool_calls: Optional[list[ToolCallRequest]] = None,
        tool_name: Optional[str] = None,
    ) -> Message:
        return self.add(Message(role=role, content=content, tool_calls=tool_calls, tool_name=tool_name))

    def messages(self) -> list[Message]:
        """Copy of the full ordered history."""
        return list(self._messages)

    def messages_for_llm(self) -> list[dict[str, Any]]:
        return [msg.to_llm() for msg in self._messages]

    def clear(self) -> None:
        """Drop every turn, keeping only the system message if there is one."""
        self._messages = [self._system] if self._system else []
        logger.info("context_cleared", kept_system_message=self._system is not None)

    def summary(self) -> dict[str, Any]:
        """
        Get summary of context state.

        Returns:
            Dictionary with message count, estimated tokens and roles
        """
        return {
            "message_count": len(self._messages),
            "total_tokens": sum(self._estimate_tokens(msg.content) for msg in self._messages),
            "roles": [msg.role for msg in self._messages],
        }

    def _estimate_tokens(self, text: str) -> int:
        """
        Estimate token count for text.

        Uses simple heuristic: ~4 characters per token.
        """
        return len(text) // 4
