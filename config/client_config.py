"""Loading of the JSON file that lists the MCP servers to connect to."""

import json
from pathlib import Path
from typing import Optional, Sequence

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from config.server_config import ServerConfig
from shared.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful SRE assistant with access to SSH and Kubernetes tools. "
    "Use the available tools to help users manage their infrastructure."
)


def default_config_paths() -> list[Path]:
    """Candidate config files, checked in order."""
    return [
        Path("./.ollama-mcp.json"),
        Path("./config.json"),
        Path.home() / ".config" / "ollama-mcp" / "config.json",
    ]


class ConfigError(Exception):
    """Raised when no usable client configuration can be loaded."""


class ClientConfig(BaseModel):
    """Contents of the client configuration file."""

    model: Optional[str] = Field(default=None, description="Ollama model to chat with")
    system_prompt: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("system_prompt", "systemPrompt"),
    )
    max_iterations: Optional[int] = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("max_iterations", "maxIterations"),
    )
    mcp_servers: list[ServerConfig] = Field(
        default_factory=list,
        validation_alias=AliasChoices("mcp_servers", "mcpServers"),
    )


def load_client_config(
    path: Optional[Path] = None,
    search_paths: Optional[Sequence[Path]] = None,
) -> ClientConfig:
    """
    Load the client configuration.

    Args:
        path: Explicit config file; when given, no search is done
        search_paths: Candidate files (defaults to default_config_paths())

    Returns:
        Parsed ClientConfig

    Raises:
        ConfigError: If no file exists, or the file is not valid
    """
    candidates = [Path(path)] if path is not None else list(search_paths or default_config_paths())

    for candidate in candidates:
        candidate = candidate.expanduser()
        if not candidate.is_file():
            continue

        logger.info("loading_config", path=str(candidate))
        try:
            raw = json.loads(candidate.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {candidate}: {e}") from e

        try:
            return ClientConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {candidate}: {e}") from e

    checked = ", ".join(str(c) for c in candidates)
    raise ConfigError(f"No config file found. Checked: {checked}")
