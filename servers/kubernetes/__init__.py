"""Kubernetes MCP Server - kubectl wrapper."""

from servers.kubernetes.kube_client import KubectlClient, KubectlError
from servers.kubernetes.kube_schemas import ContainerInfo, NodeInfo, PodInfo

__all__ = [
    "KubectlClient",
    "KubectlError",
    "ContainerInfo",
    "NodeInfo",
    "PodInfo",
]
