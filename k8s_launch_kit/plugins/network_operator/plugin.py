"""
NVIDIA Network Operator plugin.

Covers SR-IOV, RDMA shared device and host-device deployments over Ethernet
or InfiniBand fabrics.
"""

import logging
from pathlib import Path
from typing import Any

from k8s_launch_kit.config import LaunchKubernetesConfig, validate_cluster_config
from k8s_launch_kit.context import RunContext
from k8s_launch_kit.exceptions import ConfigurationError
from k8s_launch_kit.kube import KubeClient
from k8s_launch_kit.models.descriptors import (
    DEPLOYMENT_TYPES,
    FABRICS,
    RequirementsDescriptor,
)
from k8s_launch_kit.models.profile import ResolvedProfile
from k8s_launch_kit.options import Options
from k8s_launch_kit.plugins.base import CapabilityProvider
from k8s_launch_kit.plugins.network_operator import discovery
from k8s_launch_kit.util.templates import TemplateRenderer

PLUGIN_NAME = "network-operator"
MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")

# LLM response key -> requirements feature flag
LLM_FEATURE_KEYS = {
    "multirail": "multirail",
    "spectrumX": "spectrumX",
    "ai": "ai",
}

DEPLOYMENT_ALIASES = {
    "hostdev": "host_device",
    "host-device": "host_device",
    "rdma-shared": "rdma_shared",
    "rdma_shared_device": "rdma_shared",
    "sr-iov": "sriov",
}

SYSTEM_PROMPT_ADDENDUM = """\
NETWORK OPERATOR PLUGIN

Fields to return:
- "fabric": "ethernet" or "infiniband"
- "deploymentType": one of
    "sriov"       - SR-IOV virtual functions, one per pod (highest performance,
                    needs SR-IOV capable nodes)
    "rdma_shared" - one RDMA device shared between pods
    "host_device" - whole physical function passed to a single pod
- "multirail": true when pods need more than one NIC (one rail per PF)
- "spectrumX": true for NVIDIA Spectrum-X Ethernet fabrics (implies multirail)
- "ai": true for AI training or inference workloads

Example:
{"fabric": "ethernet", "deploymentType": "sriov", "multirail": true,
 "spectrumX": false, "ai": true, "confidence": "high",
 "reasoning": "Multi-NIC AI training on SR-IOV capable Ethernet nodes."}"""

logger = logging.getLogger(__name__)


def parse_bool(value: str, key: str) -> bool:
    """
    Parse an LLM boolean field.

    An empty value means the field was not returned and reads as False.

    Raises:
        ConfigurationError: If the value is not a boolean spelling
    """
    normalized = value.strip().lower()
    if normalized in ("", "false"):
        return False
    if normalized == "true":
        return True
    raise ConfigurationError(f"invalid boolean value for {key}: {value!r}")


def normalize_fabric(value: str) -> str:
    fabric = value.strip().lower()
    if fabric not in FABRICS:
        raise ConfigurationError(
            f"unsupported fabric: {value!r}",
            f"Use one of: {', '.join(FABRICS)}",
        )
    return fabric


def normalize_deployment(value: str) -> str:
    deployment = value.strip().lower()
    deployment = DEPLOYMENT_ALIASES.get(deployment, deployment)
    if deployment not in DEPLOYMENT_TYPES:
        raise ConfigurationError(
            f"unsupported deployment type: {value!r}",
            f"Use one of: {', '.join(DEPLOYMENT_TYPES)}",
        )
    return deployment


def build_template_context(
    resolved: ResolvedProfile, config: LaunchKubernetesConfig
) -> dict[str, Any]:
    """Variables available to profile templates: the config document plus profile identity."""
    context = config.to_dict()
    context.setdefault(
        "clusterConfig",
        {"capabilities": {"nodes": {}}, "pfs": [], "workerNodes": [], "nodeSelector": {}},
    )
    context["profile"] = config.profile.to_dict() if config.profile else {}
    context["profileName"] = resolved.name
    return context


class NetworkOperatorPlugin(CapabilityProvider):
    """Plugin deploying NVIDIA Network Operator resources."""

    name = PLUGIN_NAME
    version = "1"

    def __init__(self, renderer: TemplateRenderer | None = None):
        self.renderer = renderer or TemplateRenderer()

    def has_requirements_from_options(self, options: Options) -> bool:
        return bool(options.fabric and options.deployment_type)

    def build_requirements_from_options(
        self, options: Options, requirements: RequirementsDescriptor
    ) -> None:
        requirements.fabric = normalize_fabric(options.fabric or "")
        requirements.deployment = normalize_deployment(options.deployment_type or "")
        requirements.set_feature("multirail", options.multirail or options.spectrum_x)
        requirements.set_feature("spectrumX", options.spectrum_x)
        requirements.set_feature("ai", options.ai)

    def build_requirements_from_llm_response(
        self, fields: dict[str, str], requirements: RequirementsDescriptor
    ) -> None:
        requirements.fabric = normalize_fabric(fields.get("fabric", ""))
        requirements.deployment = normalize_deployment(fields.get("deploymentType", ""))
        flags = {
            feature: parse_bool(fields.get(key, ""), key)
            for key, feature in LLM_FEATURE_KEYS.items()
        }
        # Spectrum-X fabrics are always multi-rail, whatever the model answered
        flags["multirail"] = flags["multirail"] or flags["spectrumX"]
        for feature, value in flags.items():
            requirements.set_feature(feature, value)

    def system_prompt_addendum(self) -> str:
        return SYSTEM_PROMPT_ADDENDUM

    def discover_capabilities(
        self, ctx: RunContext, client: KubeClient, defaults: dict[str, Any]
    ) -> dict[str, Any]:
        ctx.raise_if_cancelled()
        return discovery.discover(ctx, client, defaults, log=ctx.child_logger(self.name))

    def generate_files(
        self, resolved: ResolvedProfile, config: LaunchKubernetesConfig
    ) -> dict[str, str]:
        """
        Render manifests and the deployment guide for a resolved profile.

        Raises:
            ConfigurationError: If the config lacks a section the deployment needs
            ValueError: If a template fails to render
        """
        deployment = config.profile.deployment if config.profile else ""
        validate_cluster_config(config, deployment)

        context = build_template_context(resolved, config)
        templates = list(resolved.templates)
        if resolved.deployment_guide is not None:
            templates.append(resolved.deployment_guide)

        files = self.renderer.render(templates, context)
        logger.info("Rendered %d file(s) for profile %s", len(files), resolved.name)
        return files

    def deploy(
        self,
        ctx: RunContext,
        resolved: ResolvedProfile,
        client: KubeClient,
        manifests_dir: Path,
    ) -> None:
        ctx.raise_if_cancelled()

        directory = Path(manifests_dir)
        if not directory.is_dir():
            raise ConfigurationError(f"manifests directory {directory} does not exist")
        manifests = sorted(p for p in directory.iterdir() if p.suffix in MANIFEST_SUFFIXES)
        if not manifests:
            raise ConfigurationError(f"no manifests found in {directory}")

        ctx.child_logger(self.name).info(
            "Applying %d manifest(s) for profile %s from %s",
            len(manifests),
            resolved.name,
            directory,
        )
        client.apply(directory)
