"""
Cluster configuration document: loading, validation and persistence.

The document combines static network operator settings, the requirements
descriptor (``profile``) and the discovered cluster facts (``clusterConfig``).
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from k8s_launch_kit.exceptions import ConfigurationError
from k8s_launch_kit.models.descriptors import ClusterConfig, RequirementsDescriptor

PACKAGE_ROOT = Path(__file__).parent
DEFAULTS_CONFIG_PATH = PACKAGE_ROOT / "defaults" / "l8k-config.yaml"

logger = logging.getLogger(__name__)

_SCHEMA_CACHE: dict[str, dict] = {}


@dataclass
class NetworkOperatorConfig:
    version: str = ""
    component_version: str = ""
    repository: str = ""
    namespace: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "componentVersion": self.component_version,
            "repository": self.repository,
            "namespace": self.namespace,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NetworkOperatorConfig":
        return cls(
            version=data.get("version", ""),
            component_version=data.get("componentVersion", ""),
            repository=data.get("repository", ""),
            namespace=data.get("namespace", ""),
        )


@dataclass
class SriovConfig:
    ethernet_mtu: int = 0
    infiniband_mtu: int = 0
    num_vfs: int = 0
    priority: int = 0
    resource_name: str = ""
    network_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ethernetMtu": self.ethernet_mtu,
            "infinibandMtu": self.infiniband_mtu,
            "numVfs": self.num_vfs,
            "priority": self.priority,
            "resourceName": self.resource_name,
            "networkName": self.network_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SriovConfig":
        return cls(
            ethernet_mtu=data.get("ethernetMtu", 0),
            infiniband_mtu=data.get("infinibandMtu", 0),
            num_vfs=data.get("numVfs", 0),
            priority=data.get("priority", 0),
            resource_name=data.get("resourceName", ""),
            network_name=data.get("networkName", ""),
        )


@dataclass
class HostdevConfig:
    resource_name: str = ""
    network_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"resourceName": self.resource_name, "networkName": self.network_name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HostdevConfig":
        return cls(
            resource_name=data.get("resourceName", ""),
            network_name=data.get("networkName", ""),
        )


@dataclass
class RdmaSharedConfig:
    resource_name: str = ""
    network_name: str = ""
    max_hca_count: int = 63

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceName": self.resource_name,
            "networkName": self.network_name,
            "maxHcaCount": self.max_hca_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RdmaSharedConfig":
        return cls(
            resource_name=data.get("resourceName", ""),
            network_name=data.get("networkName", ""),
            max_hca_count=data.get("maxHcaCount", 63),
        )


@dataclass
class LaunchKubernetesConfig:
    """Full cluster configuration document."""

    network_operator: NetworkOperatorConfig | None = None
    sriov: SriovConfig | None = None
    hostdev: HostdevConfig | None = None
    rdma_shared: RdmaSharedConfig | None = None
    profile: RequirementsDescriptor | None = None
    cluster_config: ClusterConfig | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    # Document key -> (attribute, section class)
    SECTIONS = {
        "networkOperator": ("network_operator", NetworkOperatorConfig),
        "sriov": ("sriov", SriovConfig),
        "hostdev": ("hostdev", HostdevConfig),
        "rdmaShared": ("rdma_shared", RdmaSharedConfig),
        "profile": ("profile", RequirementsDescriptor),
        "clusterConfig": ("cluster_config", ClusterConfig),
    }

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, (attr, _section) in self.SECTIONS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value.to_dict()
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LaunchKubernetesConfig":
        kwargs: dict[str, Any] = {}
        for key, (attr, section) in cls.SECTIONS.items():
            if data.get(key) is not None:
                kwargs[attr] = section.from_dict(data[key])
        extra = {key: value for key, value in data.items() if key not in cls.SECTIONS}
        return cls(extra=extra, **kwargs)


def _load_schema(name: str) -> dict:
    """Load and cache a JSON schema shipped with the package."""
    if name not in _SCHEMA_CACHE:
        schema_file = PACKAGE_ROOT / "schema" / f"{name}.schema.json"
        if not schema_file.exists():
            raise FileNotFoundError(
                f"Schema file not found: {schema_file}\n"
                f"This indicates an incomplete installation. Please reinstall k8s-launch-kit:\n"
                f"  pip install --force-reinstall k8s-launch-kit"
            )
        _SCHEMA_CACHE[name] = json.loads(schema_file.read_text())
    return _SCHEMA_CACHE[name]


def load_config_document(path: str | Path | None) -> dict[str, Any]:
    """
    Read and schema-validate a cluster configuration YAML file.

    Args:
        path: Path to the YAML document

    Returns:
        The parsed document as a dict

    Raises:
        ConfigurationError: If the path is empty, missing, unparseable or invalid
    """
    if not path:
        raise ConfigurationError(
            "no cluster configuration path provided",
            "Use --discover-cluster-config with --save-cluster-config, "
            "or pass an existing file with --user-config",
        )

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"cluster config file {config_path} does not exist")

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse cluster config YAML {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid cluster config {config_path}: expected mapping, got {type(data).__name__}"
        )

    try:
        validate(instance=data, schema=_load_schema("cluster-config"))
    except ValidationError as e:
        raise ConfigurationError(
            f"Cluster config validation failed for {config_path}:\n"
            f"  {e.message}\n"
            f"  Path: {'.'.join(str(p) for p in e.path) or 'root'}"
        ) from e

    return data


def load_full_config(path: str | Path | None) -> LaunchKubernetesConfig:
    """Load a cluster configuration document into dataclasses."""
    data = load_config_document(path)
    logger.debug("Loaded cluster config from %s", path)
    return LaunchKubernetesConfig.from_dict(data)


def save_full_config(config: LaunchKubernetesConfig | dict[str, Any], path: str | Path) -> Path:
    """Write a configuration document as YAML, creating parent directories."""
    if not path:
        raise ConfigurationError(
            "no output path provided for discovered cluster config",
            "Pass --save-cluster-config <path>",
        )
    data = config.to_dict() if isinstance(config, LaunchKubernetesConfig) else config
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return output


def validate_cluster_config(config: LaunchKubernetesConfig, deployment: str) -> None:
    """
    Check that the sections a deployment type renders from are filled in.

    Args:
        config: Loaded cluster configuration
        deployment: Deployment type (sriov, host_device, rdma_shared)

    Raises:
        ConfigurationError: Listing the first missing field
    """
    operator = config.network_operator
    if operator is None:
        raise ConfigurationError("networkOperator section is required")
    for value, key in (
        (operator.repository, "repository"),
        (operator.component_version, "componentVersion"),
        (operator.namespace, "namespace"),
    ):
        if not value:
            raise ConfigurationError(f"networkOperator.{key} is required")

    if deployment == "sriov":
        section, name = config.sriov, "sriov"
    elif deployment == "host_device":
        section, name = config.hostdev, "hostdev"
    elif deployment == "rdma_shared":
        section, name = config.rdma_shared, "rdmaShared"
    else:
        return

    if section is None:
        raise ConfigurationError(f"{name} section is required for {deployment} deployments")
    if not section.resource_name:
        raise ConfigurationError(f"{name}.resourceName is required")
    if not section.network_name:
        raise ConfigurationError(f"{name}.networkName is required")
