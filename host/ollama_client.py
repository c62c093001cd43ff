"""Ollama client for LLM interaction with function calling support."""

import asyncio
import json
from typing import Any, Optional, Protocol, Sequence

import httpx
from ollama import AsyncClient as oaClient, ChatResponse
from pydantic import BaseModel, Field

from config.settings import get_settings
from host.context_manager import Message, ToolCallRequest
from host.errors import BackendError
from shared.logging_config import get_logger
from shared.utils import retry_async


logger = get_logger(__name__)


class ToolDefinition(BaseModel):
    """Tool definition for function calling."""

    type: str = Field(default="function", description="Tool type")
    function: dict[str, Any] = Field(..., description="Function specification")


class OllamaResponse(BaseModel):
    """Structured response from Ollama."""

    content: str = Field(default="", description="Response content")
    model: str = Field(..., description="Model used")
    tool_calls: list[ToolCallRequest] = Field(default_factory=list, description="Requested tool calls")
    prompt_eval_count: Optional[int] = Field(default=None, description="Number of tokens in prompt")
    eval_count: Optional[int] = Field(default=None, description="Number of tokens generated")

    def to_message(self) -> Message:
        return Message(role="assistant", content=self.content, tool_calls=self.tool_calls or None)


class ChatBackend(Protocol):
    """Stateless chat completion service used by the agent."""

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDefinition]] = None,
        model: Optional[str] = None,
    ) -> OllamaResponse: ...


class OllamaClient:
    """
    Async client for a local Ollama server.

    Supports:
    - Chat completion with tool definitions
    - Retries of transient transport failures
    - Health check
    """

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        client: Optional[Any] = None,
    ):
        """
        Args:
            host: Ollama server URL (defaults to settings)
            model: Default model name (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            retry_attempts: Attempts for transient failures (defaults to settings)
            client: Preconfigured ollama AsyncClient
        """
        settings = get_settings()
        self.host = host or settings.ollama_host
        self.model = model or settings.ollama_model
        self.timeout = timeout or settings.ollama_timeout
        self.retry_attempts = retry_attempts or settings.ollama_retry_attempts

        self.client = client or oaClient(host=self.host, timeout=self.timeout)
        self._chat_with_retry = retry_async(
            max_attempts=self.retry_attempts,
            delay=1.0,
            backoff=2.0,
            exceptions=(ConnectionError, httpx.TransportError),
        )(self._chat_once)

        logger.info(
            "ollama_client_initialized",
            host=self.host,
            model=self.model,
            timeout=self.timeout,
        )

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDefinition]] = None,
        model: Optional[str] = None,
    ) -> OllamaResponse:
        """
        Send chat request to Ollama.

        Args:
            messages: Conversation history
            tools: Optional tool definitions for function calling
            model: Model override for this request

        Returns:
            OllamaResponse with content and any requested tool calls

        Raises:
            BackendError: If the request fails
        """
        model = model or self.model
        request_params: dict[str, Any] = {
            "model": model,
            "messages": [msg.to_llm() for msg in messages],
            "stream": False,
        }
        if tools:
            request_params["tools"] = [t.model_dump() for t in tools]

        logger.debug(
            "ollama_chat_request",
            model=model,
            message_count=len(messages),
            tool_count=len(tools or []),
        )

        try:
            response = await self._chat_with_retry(request_params)
        except Exception as e:
            logger.error("ollama_chat_error", error=str(e), model=model)
            raise BackendError(f"Ollama chat failed: {e}") from e

        ollama_response = self._parse_response(response, model)

        logger.info(
            "ollama_chat_completed",
            model=model,
            content_length=len(ollama_response.content),
            tool_calls=len(ollama_response.tool_calls),
            prompt_tokens=ollama_response.prompt_eval_count,
            completion_tokens=ollama_response.eval_count,
        )
        return ollama_response

    async def _chat_once(self, request_params: dict[str, Any]) -> ChatResponse:
        return await self.client.chat(**request_params)

    def _parse_response(self, response: ChatResponse, model: str) -> OllamaResponse:
        message = response.message
        tool_calls: list[ToolCallRequest] = []
        for call in message.tool_calls or []:
            arguments = call.function.arguments
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments) if arguments.strip() else {}
                except json.JSONDecodeError as e:
                    raise BackendError(
                        f"Model sent invalid arguments for tool '{call.function.name}': {e}"
                    ) from e
            tool_calls.append(ToolCallRequest(name=call.function.name, arguments=dict(arguments or {})))

        return OllamaResponse(
            content=message.content or "",
            model=getattr(response, "model", None) or model,
            tool_calls=tool_calls,
            prompt_eval_count=getattr(response, "prompt_eval_count", None),
            eval_count=getattr(response, "eval_count", None),
        )

    async def check_health(self) -> bool:
        """
        Check if Ollama server is healthy.

        Returns:
            True if healthy, False otherwise
        """
        try:
            # Try to list models as a health check
            await asyncio.wait_for(self.client.list(), timeout=5.0)
            logger.debug("ollama_health_check_passed")
            return True
        except Exception as e:
            logger.warning("ollama_health_check_failed", error=str(e))
            return False
