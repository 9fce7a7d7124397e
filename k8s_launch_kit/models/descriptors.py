"""Requirement and capability descriptors exchanged between the launcher and plugins.

The requirements descriptor is the desired state (fabric, deployment type and
named feature flags); the capabilities descriptor is the discovered state of
the cluster. Both serialize to the camelCase keys used in the cluster
configuration document.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

FABRICS = ("ethernet", "infiniband")
DEPLOYMENT_TYPES = ("sriov", "rdma_shared", "host_device")

# Keys that are descriptor attributes rather than feature flags
_CORE_REQUIREMENT_KEYS = ("fabric", "deployment")


@dataclass
class RequirementsDescriptor:
    """Desired networking setup, built once per run.

    Plugins fill the descriptor in place while requirements are acquired; the
    launcher then calls ``freeze()`` and the descriptor stays read-only.
    """

    fabric: str = ""
    deployment: str = ""
    features: dict[str, bool] = field(default_factory=dict)
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"RequirementsDescriptor is frozen; cannot set '{name}'")
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set_feature(self, name: str, value: bool) -> None:
        if self._frozen:
            raise AttributeError(f"RequirementsDescriptor is frozen; cannot set feature '{name}'")
        self.features[name] = bool(value)

    def feature(self, name: str) -> bool:
        """Feature flag value; flags never set read as False."""
        return bool(self.features.get(name, False))

    def value_of(self, key: str) -> str | bool:
        """Value a profile predicate named ``key`` is compared against."""
        if key == "fabric":
            return self.fabric
        if key == "deployment":
            return self.deployment
        return self.feature(key)

    def freeze(self) -> "RequirementsDescriptor":
        self.features = MappingProxyType(dict(self.features))  # type: ignore[assignment]
        object.__setattr__(self, "_frozen", True)
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"fabric": self.fabric, "deployment": self.deployment}
        data.update(self.features)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RequirementsDescriptor":
        data = data or {}
        features = {
            key: bool(value) for key, value in data.items() if key not in _CORE_REQUIREMENT_KEYS
        }
        return cls(
            fabric=data.get("fabric") or "",
            deployment=data.get("deployment") or "",
            features=features,
        )


@dataclass
class CapabilitiesDescriptor:
    """Hardware capability flags discovered on the worker nodes (sriov, rdma, ib, ...)."""

    nodes: dict[str, bool] = field(default_factory=dict)

    def capability(self, key: str) -> bool:
        return bool(self.nodes.get(key, False))

    def to_dict(self) -> dict[str, Any]:
        return {"nodes": dict(self.nodes)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "CapabilitiesDescriptor":
        nodes = (data or {}).get("nodes") or {}
        return cls(nodes={key: bool(value) for key, value in nodes.items()})


@dataclass
class PhysicalFunction:
    """A NIC physical function found on a worker node."""

    pci_address: str
    network_interface: str = ""
    rdma_device: str = ""
    link_type: str = ""
    traffic: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "pciAddress": self.pci_address,
            "networkInterface": self.network_interface,
            "rdmaDevice": self.rdma_device,
            "linkType": self.link_type,
            "traffic": self.traffic,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhysicalFunction":
        return cls(
            pci_address=data.get("pciAddress", ""),
            network_interface=data.get("networkInterface", ""),
            rdma_device=data.get("rdmaDevice", ""),
            link_type=data.get("linkType", ""),
            traffic=data.get("traffic", ""),
        )


@dataclass
class ClusterConfig:
    """Discovered cluster facts: capabilities, PFs and the worker nodes they live on."""

    capabilities: CapabilitiesDescriptor = field(default_factory=CapabilitiesDescriptor)
    pfs: list[PhysicalFunction] = field(default_factory=list)
    worker_nodes: list[str] = field(default_factory=list)
    node_selector: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "capabilities": self.capabilities.to_dict(),
            "pfs": [pf.to_dict() for pf in self.pfs],
            "workerNodes": list(self.worker_nodes),
            "nodeSelector": dict(self.node_selector),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ClusterConfig":
        data = data or {}
        return cls(
            capabilities=CapabilitiesDescriptor.from_dict(data.get("capabilities")),
            pfs=[PhysicalFunction.from_dict(pf) for pf in data.get("pfs") or []],
            worker_nodes=list(data.get("workerNodes") or []),
            node_selector=dict(data.get("nodeSelector") or {}),
        )
