import asyncio
import json
import stat
import sys

import pytest

from servers.kubernetes import server_kube
from servers.kubernetes.kube_client import KubectlClient, KubectlError
from servers.kubernetes.kube_schemas import NodeInfo, PodInfo

PODS = {
    "items": [
        {
            "metadata": {"name": "web-1", "namespace": "default"},
            "spec": {"nodeName": "pi-1", "containers": [{"name": "nginx", "image": "nginx:1.27"}]},
            "status": {"phase": "Running", "podIP": "10.42.0.7"},
        }
    ]
}

NODES = {
    "items": [
        {
            "metadata": {"name": "pi-1"},
            "status": {
                "conditions": [{"type": "MemoryPressure", "status": "False"}, {"type": "Ready", "status": "True"}],
                "nodeInfo": {"kubeletVersion": "v1.30.2", "osImage": "Debian 12", "architecture": "arm64"},
                "addresses": [{"type": "InternalIP", "address": "192.168.1.100"}],
            },
        }
    ]
}


@pytest.fixture
def fake_kubectl(tmp_path):
    """A kubectl stand-in that records its arguments and prints canned output."""
    script = tmp_path / "kubectl"
    log = tmp_path / "calls.log"
    script.write_text(
        f"#!{sys.executable}\n"
        "import json, sys\n"
        f"open({str(log)!r}, 'a').write(json.dumps(sys.argv[1:]) + '\\n')\n"
        "args = sys.argv[1:]\n"
        "if args[:1] == ['--kubeconfig']:\n"
        "    args = args[2:]\n"
        "if args[:2] == ['get', 'pods']:\n"
        f"    print(json.dumps({PODS!r}))\n"
        "elif args[:2] == ['get', 'nodes']:\n"
        f"    print(json.dumps({NODES!r}))\n"
        "elif args[:1] == ['boom']:\n"
        "    sys.stderr.write('error: unknown command \"boom\"')\n"
        "    sys.exit(1)\n"
        "else:\n"
        "    print(' '.join(args))\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IEXEC)

    def calls():
        return [json.loads(line) for line in log.read_text().splitlines()]

    return str(script), calls


def test_pod_and_node_parsing():
    [pod] = [PodInfo.from_api(item) for item in PODS["items"]]
    assert pod.name == "web-1"
    assert pod.status == "Running"
    assert pod.containers[0].image == "nginx:1.27"

    [node] = [NodeInfo.from_api(item) for item in NODES["items"]]
    assert node.ready == "True"
    assert node.architecture == "arm64"
    assert node.addresses[0].address == "192.168.1.100"


def test_get_pods_runs_kubectl_with_namespace(fake_kubectl):
    path, calls = fake_kubectl
    client = KubectlClient(kubectl_path=path, kubeconfig="/tmp/kubeconfig", timeout=10)

    pods = asyncio.run(client.get_pods("default"))

    assert [p.name for p in pods] == ["web-1"]
    assert calls() == [["--kubeconfig", "/tmp/kubeconfig", "get", "pods", "-n", "default", "-o", "json"]]


def test_execute_strips_leading_kubectl(fake_kubectl):
    path, calls = fake_kubectl
    client = KubectlClient(kubectl_path=path, timeout=10)

    output = asyncio.run(client.execute("kubectl describe pod 'web 1'"))

    assert output.strip() == "describe pod web 1"
    assert calls() == [["describe", "pod", "web 1"]]


def test_failed_command_raises(fake_kubectl):
    path, _ = fake_kubectl
    client = KubectlClient(kubectl_path=path, timeout=10)

    with pytest.raises(KubectlError, match="unknown command"):
        asyncio.run(client.execute("boom"))


def test_empty_command_raises():
    with pytest.raises(KubectlError, match="Command is required"):
        asyncio.run(KubectlClient(kubectl_path="kubectl").execute("  "))


def test_missing_kubectl_binary():
    client = KubectlClient(kubectl_path="/nonexistent/kubectl", timeout=10)

    with pytest.raises(KubectlError):
        asyncio.run(client.get_nodes())


def test_get_nodes_tool(fake_kubectl, monkeypatch):
    path, _ = fake_kubectl
    monkeypatch.setattr(server_kube, "kube_client", KubectlClient(kubectl_path=path, timeout=10))

    nodes = json.loads(asyncio.run(server_kube.get_nodes()))

    assert nodes[0]["name"] == "pi-1"
    assert nodes[0]["kubelet_version"] == "v1.30.2"


def test_troubleshooting_resource_is_markdown():
    assert server_kube.troubleshooting_guide().startswith("# kubectl Troubleshooting Guide")
