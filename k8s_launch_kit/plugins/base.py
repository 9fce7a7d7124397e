"""
Abstract base class for capability providers (plugins).

A plugin owns one networking technology: it discovers the cluster facts it
cares about, turns options or an LLM recommendation into requirements,
renders manifests for the profile chosen for it and applies them.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from k8s_launch_kit.models.descriptors import RequirementsDescriptor
from k8s_launch_kit.models.profile import ResolvedProfile

if TYPE_CHECKING:
    from k8s_launch_kit.config import LaunchKubernetesConfig
    from k8s_launch_kit.context import RunContext
    from k8s_launch_kit.kube import KubeClient
    from k8s_launch_kit.options import Options


class CapabilityProvider(ABC):
    """
    Base class for plugins.

    ``name`` filters catalog entries, namespaces generated files and routes
    resolved profiles back to their plugin.
    """

    name: str = ""
    version: str = "1"

    def identity(self) -> tuple[str, str]:
        return (self.name, self.version)

    @abstractmethod
    def has_requirements_from_options(self, options: "Options") -> bool:
        """
        Whether the command line fully specifies this plugin's requirements.

        The launcher skips the LLM only when every plugin returns True.
        """
        pass

    @abstractmethod
    def build_requirements_from_options(
        self, options: "Options", requirements: RequirementsDescriptor
    ) -> None:
        """Fill this plugin's fields of ``requirements`` from the command line."""
        pass

    @abstractmethod
    def build_requirements_from_llm_response(
        self, fields: dict[str, str], requirements: RequirementsDescriptor
    ) -> None:
        """Fill this plugin's fields of ``requirements`` from an LLM recommendation."""
        pass

    def system_prompt_addendum(self) -> str:
        """Plugin-specific instructions appended to the LLM system prompt."""
        return ""

    @abstractmethod
    def discover_capabilities(
        self, ctx: "RunContext", client: "KubeClient", defaults: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Query the cluster and return this plugin's slice of the configuration document.

        Args:
            ctx: Run context
            client: Cluster client
            defaults: The defaults document (read-only)

        Returns:
            A partial configuration document. Keys must not overlap with
            other plugins' partials.
        """
        pass

    @abstractmethod
    def generate_files(
        self, resolved: ResolvedProfile, config: "LaunchKubernetesConfig"
    ) -> dict[str, str]:
        """Render the profile's templates into filename -> content. No disk I/O."""
        pass

    @abstractmethod
    def deploy(
        self,
        ctx: "RunContext",
        resolved: ResolvedProfile,
        client: "KubeClient",
        manifests_dir: Path,
    ) -> None:
        """Apply the files ``generate_files`` produced, already written to ``manifests_dir``."""
        pass
