"""
Run options collected from the command line.
"""

from dataclasses import dataclass, field

DEFAULT_PLUGINS = ["network-operator"]


@dataclass
class Options:
    """
    Every value ``l8k run`` accepts, passed explicitly to the launcher and plugins.
    """

    # Cluster discovery
    discover_cluster_config: bool = False
    save_cluster_config: str | None = None
    user_config: str | None = None
    defaults_config: str | None = None
    kubeconfig: str | None = None

    # Profile selection
    profiles_dir: str | None = None
    fabric: str | None = None
    deployment_type: str | None = None
    multirail: bool = False
    spectrum_x: bool = False
    ai: bool = False

    # LLM assistance
    prompt: str | None = None
    llm_interactive: bool = False
    llm_vendor: str = "openai"
    llm_model: str | None = None
    llm_api_key: str | None = None
    llm_api_url: str | None = None

    # Output and deployment
    save_deployment_files: str | None = None
    deploy: bool = False

    enabled_plugins: list[str] = field(default_factory=lambda: list(DEFAULT_PLUGINS))

    # Logging
    log_level: str = "info"
    log_file: str | None = None
    enable_logging: bool = False

    @property
    def has_requirement_flags(self) -> bool:
        """True if any requirement flag was given on the command line."""
        return bool(
            self.fabric or self.deployment_type or self.multirail or self.spectrum_x or self.ai
        )

    @property
    def uses_llm(self) -> bool:
        return bool(self.prompt) or self.llm_interactive

    def llm_config(self) -> dict:
        """Settings handed to ``llm.get_provider``."""
        return {
            "vendor": self.llm_vendor,
            "model": self.llm_model,
            "api_key": self.llm_api_key,
            "api_url": self.llm_api_url,
        }
