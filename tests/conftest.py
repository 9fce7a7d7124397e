"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest
import yaml

from k8s_launch_kit.config import DEFAULTS_CONFIG_PATH
from k8s_launch_kit.context import RunContext
from k8s_launch_kit.llm.base import DEFAULT_TEMPERATURE, LLMProvider
from k8s_launch_kit.util.progress import Output


class FakeLLM(LLMProvider):
    """LLM returning canned responses (or raising canned errors) in order."""

    vendor = "fake"

    def __init__(self, responses=()):
        super().__init__({"api_key": "test-key", "model": "fake-model"})
        self.responses = list(responses)
        self.calls = []

    def complete(
        self,
        system_prompt,
        history,
        user_text,
        max_tokens=4096,
        temperature=DEFAULT_TEMPERATURE,
    ):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "history": [dict(turn) for turn in history],
                "user_text": user_text,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def is_available(self):
        return True


class FakeKubeClient:
    """In-memory stand-in for KubeClient."""

    def __init__(self, nodes=(), node_states=(), crds=(), apply_error=None):
        self.nodes = list(nodes)
        self.node_states = list(node_states)
        self.crds = set(crds)
        self.apply_error = apply_error
        self.queries = []
        self.applied = []

    def get_json(self, resource, namespace=None, selector=None):
        self.queries.append((resource, namespace, selector))
        if resource == "nodes":
            return {"items": self.nodes}
        if resource == "sriovnetworknodestates":
            return {"items": self.node_states}
        return {"items": []}

    def crd_exists(self, name):
        return name in self.crds

    def apply(self, manifests_dir):
        if self.apply_error:
            raise self.apply_error
        self.applied.append(Path(manifests_dir))
        return ""


def make_node(name, sriov_capable=True):
    labels = {"feature.node.kubernetes.io/pci-15b3.present": "true"}
    if sriov_capable:
        labels["feature.node.kubernetes.io/network-sriov.capable"] = "true"
    return {"metadata": {"name": name, "labels": labels}}


def make_node_state(name, interfaces):
    return {"metadata": {"name": name}, "status": {"interfaces": interfaces}}


def make_interface(pci_address, name, link_type="ETH", vendor="15b3"):
    return {"pciAddress": pci_address, "name": name, "linkType": link_type, "vendor": vendor}


@pytest.fixture
def fake_llm():
    """Factory for FakeLLM instances."""

    def _make(*responses):
        return FakeLLM(responses)

    return _make


@pytest.fixture
def fake_kube():
    """Factory for FakeKubeClient instances."""

    def _make(**kwargs):
        return FakeKubeClient(**kwargs)

    return _make


@pytest.fixture
def cluster_nodes():
    """Two SR-IOV capable worker nodes with two Ethernet PFs each."""
    nodes = [make_node("worker-1"), make_node("worker-2")]
    interfaces = [
        make_interface("0000:08:00.0", "ens1f0"),
        make_interface("0000:08:00.1", "ens1f1"),
    ]
    states = [make_node_state("worker-1", interfaces), make_node_state("worker-2", interfaces)]
    return nodes, states


@pytest.fixture
def silent_output():
    return Output.silent()


@pytest.fixture
def run_context(silent_output):
    return RunContext(output=silent_output)


@pytest.fixture
def defaults_document():
    """The packaged defaults document as a dict."""
    return yaml.safe_load(DEFAULTS_CONFIG_PATH.read_text())


@pytest.fixture
def cluster_config_data(defaults_document):
    """A full cluster configuration document for an SR-IOV/RDMA capable Ethernet cluster."""
    data = dict(defaults_document)
    data["clusterConfig"] = {
        "capabilities": {"nodes": {"sriov": True, "rdma": True, "ib": False}},
        "pfs": [
            {"pciAddress": "0000:08:00.0", "networkInterface": "ens1f0", "linkType": "ETH"},
            {"pciAddress": "0000:08:00.1", "networkInterface": "ens1f1", "linkType": "ETH"},
        ],
        "workerNodes": ["worker-1", "worker-2"],
        "nodeSelector": {"feature.node.kubernetes.io/pci-15b3.present": "true"},
    }
    return data


@pytest.fixture
def cluster_config_file(tmp_path, cluster_config_data):
    """Cluster configuration document written to disk."""
    path = tmp_path / "cluster-config.yaml"
    path.write_text(yaml.safe_dump(cluster_config_data))
    return path


@pytest.fixture
def write_profile():
    """Write a catalog entry: ``write_profile(root, dirname, data, files={name: content})``."""

    def _write(root, dirname, data, files=None):
        entry = Path(root) / dirname
        entry.mkdir(parents=True, exist_ok=True)
        (entry / "profile.yaml").write_text(yaml.safe_dump(data))
        for name, content in (files or {}).items():
            (entry / name).write_text(content)
        return entry

    return _write
