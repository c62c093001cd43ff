"""Data schemas for the SSH server."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SSHConfig(BaseModel):
    """Connection settings of the remote host."""

    host: str
    port: int = Field(default=22, ge=1, le=65535)
    username: str
    password: Optional[str] = None
    private_key_path: Optional[Path] = None
    passphrase: Optional[str] = None
    known_hosts: Optional[Path] = Field(
        default=None, description="known_hosts file used to verify the host key, None skips verification"
    )

    @model_validator(mode="after")
    def check_credentials(self) -> "SSHConfig":
        if not self.password and not self.private_key_path:
            raise ValueError("Either password or private_key_path must be provided")
        return self

    @property
    def target(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


class ExecResult(BaseModel):
    """Outcome of a remote command."""

    exit_code: int = Field(serialization_alias="exitCode")
    stdout: str = ""
    stderr: str = ""

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), indent=2)
