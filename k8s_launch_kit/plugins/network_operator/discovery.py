"""
Cluster discovery for the NVIDIA Network Operator plugin.

Worker nodes are the nodes matching the configured node selector (Mellanox
PCI devices reported by Node Feature Discovery by default). Physical functions
come from the SR-IOV Network Operator's SriovNetworkNodeState resources when
that CRD is installed.
"""

import logging
from typing import Any

from k8s_launch_kit.context import RunContext
from k8s_launch_kit.exceptions import ConfigurationError
from k8s_launch_kit.kube import KubeClient
from k8s_launch_kit.models.descriptors import PhysicalFunction

DEFAULT_NODE_SELECTOR = {"feature.node.kubernetes.io/pci-15b3.present": "true"}
SRIOV_CAPABLE_LABEL = "feature.node.kubernetes.io/network-sriov.capable"
SRIOV_NODE_STATE_CRD = "sriovnetworknodestates.sriovnetwork.openshift.io"
MELLANOX_VENDOR_ID = "15b3"
INFINIBAND_LINK_TYPE = "IB"

logger = logging.getLogger(__name__)


def format_selector(selector: dict[str, str]) -> str:
    """``{"a": "1", "b": "2"}`` -> ``a=1,b=2`` (sorted by key)."""
    return ",".join(f"{key}={value}" for key, value in sorted(selector.items()))


def discover_worker_nodes(client: KubeClient, selector: dict[str, str]) -> list[dict[str, Any]]:
    """
    Nodes matching the selector.

    Raises:
        ConfigurationError: If no node matches
    """
    nodes = client.get_json("nodes", selector=format_selector(selector)).get("items") or []
    if not nodes:
        raise ConfigurationError(
            f"no nodes match node selector {format_selector(selector)}",
            "Check that Node Feature Discovery is running, or set "
            "clusterConfig.nodeSelector in the defaults config",
        )
    return nodes


def node_name(node: dict[str, Any]) -> str:
    return node.get("metadata", {}).get("name", "")


def sriov_capable(nodes: list[dict[str, Any]]) -> bool:
    """True when every selected node carries the NFD SR-IOV capable label."""
    return all(
        node.get("metadata", {}).get("labels", {}).get(SRIOV_CAPABLE_LABEL) == "true"
        for node in nodes
    )


def physical_functions(
    node_states: list[dict[str, Any]], worker_nodes: list[str]
) -> list[PhysicalFunction]:
    """
    Mellanox PFs reported by SriovNetworkNodeState objects of the worker nodes.

    PFs are deduplicated by PCI address (the first node reporting one wins)
    and returned sorted by PCI address.
    """
    found: dict[str, PhysicalFunction] = {}
    for state in node_states:
        if node_name(state) not in worker_nodes:
            continue
        for iface in state.get("status", {}).get("interfaces") or []:
            if iface.get("vendor", "").lower() != MELLANOX_VENDOR_ID:
                continue
            pci_address = iface.get("pciAddress", "")
            if not pci_address or pci_address in found:
                continue
            found[pci_address] = PhysicalFunction(
                pci_address=pci_address,
                network_interface=iface.get("name", ""),
                link_type=iface.get("linkType", ""),
            )
    return [found[address] for address in sorted(found)]


def discover(
    ctx: RunContext,
    client: KubeClient,
    defaults: dict[str, Any],
    log: logging.Logger | None = None,
) -> dict[str, Any]:
    """
    Discover node capabilities, PFs and worker nodes.

    Args:
        log: Logger for progress messages (this module's logger by default)

    Returns:
        Partial configuration document with the ``clusterConfig`` section
    """
    cluster = defaults.get("clusterConfig") or {}
    selector = cluster.get("nodeSelector") or DEFAULT_NODE_SELECTOR
    namespace = (defaults.get("networkOperator") or {}).get("namespace") or None
    log = log or logger

    nodes = discover_worker_nodes(client, selector)
    worker_nodes = sorted(node_name(node) for node in nodes)
    log.info("Found %d worker node(s): %s", len(worker_nodes), ", ".join(worker_nodes))

    pfs: list[PhysicalFunction] = []
    if client.crd_exists(SRIOV_NODE_STATE_CRD):
        states = client.get_json("sriovnetworknodestates", namespace=namespace).get("items") or []
        pfs = physical_functions(states, worker_nodes)
        log.info("Found %d Mellanox physical function(s)", len(pfs))
    else:
        ctx.output.warning(
            "SriovNetworkNodeState CRD not installed; physical functions not discovered"
        )

    capabilities = {
        "sriov": sriov_capable(nodes),
        "rdma": bool(pfs),
        "ib": any(pf.link_type.upper() == INFINIBAND_LINK_TYPE for pf in pfs),
    }
    log.debug("Discovered node capabilities: %s", capabilities)

    return {
        "clusterConfig": {
            "capabilities": {"nodes": capabilities},
            "pfs": [pf.to_dict() for pf in pfs],
            "workerNodes": worker_nodes,
            "nodeSelector": dict(selector),
        }
    }
