"""
Capability provider registry.
"""

from k8s_launch_kit.exceptions import UnknownProviderError
from k8s_launch_kit.plugins.base import CapabilityProvider
from k8s_launch_kit.plugins.network_operator import PLUGIN_NAME as NETWORK_OPERATOR
from k8s_launch_kit.plugins.network_operator import NetworkOperatorPlugin

PLUGINS: dict[str, type[CapabilityProvider]] = {
    NETWORK_OPERATOR: NetworkOperatorPlugin,
}


def build_plugins(
    names: list[str], registry: dict[str, type[CapabilityProvider]] | None = None
) -> dict[str, CapabilityProvider]:
    """
    Instantiate the enabled plugins, keyed by name in the order given.

    Raises:
        UnknownProviderError: On the first name without a registered plugin
    """
    registry = PLUGINS if registry is None else registry
    plugins: dict[str, CapabilityProvider] = {}
    for name in names:
        if name not in registry:
            raise UnknownProviderError(name, sorted(registry))
        if name not in plugins:
            plugins[name] = registry[name]()
    return plugins


__all__ = ["CapabilityProvider", "PLUGINS", "build_plugins"]
