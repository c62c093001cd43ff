"""MCP Server for Kubernetes clusters, wrapping kubectl."""

import argparse
import json
from pathlib import Path
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP, Context
from mcp.server.session import ServerSession

from config.settings import get_settings
from shared.logging_config import get_logger
from servers.kubernetes.kube_client import KubectlClient

logger = get_logger(__name__)

DOCS_DIR = Path(__file__).parent / "docs"

# Create MCP server
mcp = FastMCP(
    name="Kubernetes",
    instructions="Inspects a Kubernetes cluster and runs kubectl commands",
)

# Replaced by KubernetesServer when started with custom options
kube_client = KubectlClient()


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2)


@mcp.tool()
async def get_pods(namespace: str = "default", ctx: Context[ServerSession, None] = None) -> str:
    """
    Get list of pods in a namespace.

    Args:
        namespace: Kubernetes namespace (default: default)
    Returns:
        JSON list of pods with phase, node, IP and containers
    """
    if ctx is not None:
        await ctx.info(f"Listing pods in namespace {namespace}")
    pods = await kube_client.get_pods(namespace or "default")
    return _dump([pod.model_dump() for pod in pods])


@mcp.tool()
async def get_nodes(ctx: Context[ServerSession, None] = None) -> str:
    """
    Get list of nodes in the cluster.

    Returns:
        JSON list of nodes with readiness, versions and addresses
    """
    if ctx is not None:
        await ctx.info("Listing cluster nodes")
    nodes = await kube_client.get_nodes()
    return _dump([node.model_dump() for node in nodes])


@mcp.tool()
async def kubectl(command: str, ctx: Context[ServerSession, None] = None) -> str:
    """
    Execute kubectl command.

    Args:
        command: kubectl command to execute (e.g., 'get pods -n default')
    Returns:
        Raw command output
    """
    if ctx is not None:
        await ctx.info(f"Running kubectl {command}")
    return await kube_client.execute(command)


@mcp.resource(
    "kubectl://troubleshooting",
    name="kubectl Troubleshooting Guide",
    description="Kubernetes troubleshooting commands and workflows",
    mime_type="text/markdown",
)
def troubleshooting_guide() -> str:
    return (DOCS_DIR / "kubectl-troubleshooting.md").read_text(encoding="utf-8")


class KubernetesServer:
    """Wrapper class for the Kubernetes MCP Server."""

    def __init__(self, kubeconfig: Optional[str] = None, kubectl_path: Optional[str] = None):
        global kube_client
        self.mcp = mcp
        self.kube_client = KubectlClient(kubectl_path=kubectl_path, kubeconfig=kubeconfig)
        kube_client = self.kube_client
        logger.info("kubernetes_server_initialized", kubeconfig=kubeconfig)

    def get_mcp_server(self) -> FastMCP:
        """Get the FastMCP server instance."""
        return self.mcp


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Kubernetes MCP Server - kubectl over MCP")
    parser.add_argument("--kubeconfig", help="Path to the kubeconfig file")
    parser.add_argument("--kubectl", dest="kubectl_path", help="kubectl executable")
    return parser.parse_args(argv)


if __name__ == "__main__":
    import asyncio
    from shared.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.mcp_log_level, settings.mcp_json_logs)

    args = parse_args()
    kubeconfig = str(Path(args.kubeconfig).expanduser()) if args.kubeconfig else None
    KubernetesServer(kubeconfig=kubeconfig, kubectl_path=args.kubectl_path)

    asyncio.run(mcp.run_stdio_async())
