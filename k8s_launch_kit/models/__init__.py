"""
Data models shared by the launcher, the profile catalog and the plugins.

Modules:
- descriptors: requirements and cluster capability descriptors
- profile: catalog entries and resolved profiles
"""

from k8s_launch_kit.models.descriptors import (
    DEPLOYMENT_TYPES,
    FABRICS,
    CapabilitiesDescriptor,
    ClusterConfig,
    PhysicalFunction,
    RequirementsDescriptor,
)
from k8s_launch_kit.models.profile import ProfileDefinition, ResolvedProfile

__all__ = [
    "DEPLOYMENT_TYPES",
    "FABRICS",
    "CapabilitiesDescriptor",
    "ClusterConfig",
    "PhysicalFunction",
    "ProfileDefinition",
    "RequirementsDescriptor",
    "ResolvedProfile",
]
