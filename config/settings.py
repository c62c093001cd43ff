"""Central configuration management using Pydantic."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # MCP Host Configuration
    mcp_client_name: str = Field(default="ollama-mcp-client", description="Name announced to MCP servers")
    mcp_client_version: str = Field(default="1.0.0")
    mcp_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    mcp_json_logs: bool = Field(default=False)
    mcp_connect_timeout: Optional[float] = Field(default=30.0, gt=0, description="Handshake timeout in seconds")
    mcp_call_timeout: Optional[float] = Field(
        default=None, gt=0, description="Per tool call timeout in seconds, None waits indefinitely"
    )
    tool_name_collision: Literal["first", "error"] = Field(
        default="first",
        description="'first' keeps the first registrant of a tool name, 'error' aborts startup",
    )

    # Ollama Configuration
    ollama_host: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default="qwen2.5:latest")
    ollama_timeout: int = Field(default=120, ge=10, le=600)
    ollama_retry_attempts: int = Field(default=3, ge=1, le=10)

    # Agent Configuration
    agent_max_iterations: int = Field(default=10, ge=1, le=100)

    # Brave Search Configuration
    brave_api_key: Optional[str] = Field(default=None)
    brave_search_url: str = Field(default="https://api.search.brave.com/res/v1/web/search")
    web_search_timeout: int = Field(default=30, ge=5, le=120)

    # Kubernetes Configuration
    kubectl_path: str = Field(default="kubectl")
    kubectl_timeout: int = Field(default=60, ge=5, le=600)

    # SSH Configuration
    ssh_command_timeout: int = Field(default=60, ge=1, le=3600, description="Remote command timeout in seconds")

    @field_validator("ollama_host")
    @classmethod
    def validate_ollama_host(cls, v: str) -> str:
        """Ensure Ollama host has proper URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("OLLAMA_HOST must start with http:// or https://")
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
