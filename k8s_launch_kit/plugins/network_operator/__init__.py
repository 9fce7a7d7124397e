"""
NVIDIA Network Operator plugin.
"""

from k8s_launch_kit.plugins.network_operator.plugin import PLUGIN_NAME, NetworkOperatorPlugin

__all__ = ["PLUGIN_NAME", "NetworkOperatorPlugin"]
