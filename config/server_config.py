import os
from typing import Optional

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Configuration for MCP server."""

    name: str = Field(..., min_length=1, description="Unique server name")
    command: str = Field(..., min_length=1, description="Executable that starts the server")
    args: list[str] = Field(default_factory=list)
    env: Optional[dict[str, str]] = Field(default=None, description="Extra environment variables")
    description: str = Field(default="")

    def build_env(self) -> Optional[dict[str, str]]:
        """Environment for the child process: the parent's, overlaid with `env`."""
        if self.env is None:
            return None
        return {**os.environ, **self.env}
