"""Async wrapper around the kubectl command line."""

import asyncio
import json
import shlex
from typing import Optional

from config.settings import get_settings
from shared.logging_config import get_logger
from servers.kubernetes.kube_schemas import NodeInfo, PodInfo

logger = get_logger(__name__)


class KubectlError(RuntimeError):
    """kubectl exited with an error or could not be run."""


class KubectlClient:
    """Runs kubectl with the caller's kubeconfig."""

    def __init__(
        self,
        kubectl_path: Optional[str] = None,
        kubeconfig: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Args:
            kubectl_path: kubectl executable (defaults to settings)
            kubeconfig: Path passed as --kubeconfig, if any
            timeout: Command timeout in seconds (defaults to settings)
        """
        settings = get_settings()
        self.kubectl_path = kubectl_path or settings.kubectl_path
        self.kubeconfig = kubeconfig
        self.timeout = timeout or settings.kubectl_timeout

    def build_command(self, args: list[str]) -> list[str]:
        command = [self.kubectl_path]
        if self.kubeconfig:
            command += ["--kubeconfig", self.kubeconfig]
        return command + args

    async def run(self, args: list[str]) -> str:
        """
        Run kubectl and return its output.

        Returns:
            stdout, or stderr when stdout is empty

        Raises:
            KubectlError: On spawn failure, timeout, or non-zero exit
        """
        command = self.build_command(args)
        logger.debug("kubectl_command", command=command)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise KubectlError(f"kubectl command failed: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise KubectlError(f"kubectl command timed out after {self.timeout}s") from e

        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        if process.returncode != 0:
            logger.error("kubectl_failed", returncode=process.returncode, stderr=err.strip())
            raise KubectlError(f"kubectl command failed: {err.strip() or f'exit code {process.returncode}'}")

        return out or err

    async def execute(self, command: str) -> str:
        """Run a free-form kubectl command line such as 'get pods -n default'."""
        args = shlex.split(command)
        if args and args[0] == "kubectl":
            args = args[1:]
        if not args:
            raise KubectlError("Command is required")
        return await self.run(args)

    async def get_pods(self, namespace: str = "default") -> list[PodInfo]:
        data = await self._get_json(["get", "pods", "-n", namespace, "-o", "json"])
        return [PodInfo.from_api(item) for item in data.get("items", [])]

    async def get_nodes(self) -> list[NodeInfo]:
        data = await self._get_json(["get", "nodes", "-o", "json"])
        return [NodeInfo.from_api(item) for item in data.get("items", [])]

    async def _get_json(self, args: list[str]) -> dict:
        output = await self.run(args)
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise KubectlError(f"Invalid JSON from kubectl: {e}") from e
