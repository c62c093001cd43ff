"""Data schemas for the Kubernetes server."""

from typing import Optional
from pydantic import BaseModel, Field


class ContainerInfo(BaseModel):
    """Container declared in a pod spec."""

    name: str
    image: Optional[str] = None


class PodInfo(BaseModel):
    """Summary of a pod."""

    name: Optional[str] = None
    namespace: Optional[str] = None
    status: Optional[str] = Field(default=None, description="Pod phase")
    node_name: Optional[str] = None
    pod_ip: Optional[str] = None
    containers: list[ContainerInfo] = Field(default_factory=list)

    @classmethod
    def from_api(cls, item: dict) -> "PodInfo":
        metadata = item.get("metadata") or {}
        spec = item.get("spec") or {}
        status = item.get("status") or {}
        return cls(
            name=metadata.get("name"),
            namespace=metadata.get("namespace"),
            status=status.get("phase"),
            node_name=spec.get("nodeName"),
            pod_ip=status.get("podIP"),
            containers=[
                ContainerInfo(name=c.get("name", ""), image=c.get("image"))
                for c in spec.get("containers") or []
            ],
        )


class NodeAddress(BaseModel):
    type: str
    address: str


class NodeInfo(BaseModel):
    """Summary of a cluster node."""

    name: Optional[str] = None
    ready: Optional[str] = Field(default=None, description="Status of the Ready condition")
    kubelet_version: Optional[str] = None
    os_image: Optional[str] = None
    architecture: Optional[str] = None
    addresses: list[NodeAddress] = Field(default_factory=list)

    @classmethod
    def from_api(cls, item: dict) -> "NodeInfo":
        metadata = item.get("metadata") or {}
        status = item.get("status") or {}
        node_info = status.get("nodeInfo") or {}
        ready = next(
            (c.get("status") for c in status.get("conditions") or [] if c.get("type") == "Ready"),
            None,
        )
        return cls(
            name=metadata.get("name"),
            ready=ready,
            kubelet_version=node_info.get("kubeletVersion"),
            os_image=node_info.get("osImage"),
            architecture=node_info.get("architecture"),
            addresses=[NodeAddress.model_validate(a) for a in status.get("addresses") or []],
        )
