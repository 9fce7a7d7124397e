"""
Custom exceptions for k8s-launch-kit with helpful error messages.
"""

from typing import Any

from rich.markup import escape


class LaunchKitError(Exception):
    """Base exception for k8s-launch-kit errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        self.phase: str | None = None
        self.plugin: str | None = None
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message

    def add_context(self, phase: str, plugin: str | None = None) -> "LaunchKitError":
        """
        Record the workflow phase (and plugin) the error surfaced in.

        The first context recorded wins, so an error re-raised through several
        layers keeps the innermost phase.
        """
        if self.phase is None:
            self.phase = phase
            self.plugin = plugin
            where = f"{phase} (plugin {plugin})" if plugin else phase
            self.message = f"{where}: {self.message}"
            self.args = (self.message,)
        return self


class ConfigurationError(LaunchKitError):
    """Invalid paths, options or configuration documents."""

    pass


class CatalogError(ConfigurationError):
    """A profile catalog entry could not be read or is invalid."""

    def __init__(self, path: str, error_details: str):
        self.path = path
        message = f"Invalid profile definition {path}: {error_details}"
        suggestion = (
            "Fix the profile.yaml file or point --profiles-dir at a valid catalog.\n"
            "List the catalog with:\n"
            "  l8k profiles"
        )
        super().__init__(message, suggestion)


class NoApplicableProfileError(LaunchKitError):
    """No catalog entry matched the requirements and capabilities."""

    def __init__(self, plugin: str, requirements: dict[str, Any], capabilities: dict[str, Any]):
        self.plugin_name = plugin
        self.requirements = requirements
        self.capabilities = capabilities
        message = (
            f"No applicable profile found for plugin '{plugin}' "
            f"(requirements: {requirements}, capabilities: {capabilities})"
        )
        suggestion = (
            "Adjust the requirement flags (--fabric, --deployment-type, --multirail, ...)\n"
            "or check which profiles exist:\n"
            "  l8k profiles"
        )
        super().__init__(message, suggestion)


class UnknownProviderError(LaunchKitError):
    """A requested plugin has no registered implementation."""

    def __init__(self, name: str, available: list[str] = None):
        self.name = name
        message = f"Unknown plugin: {name}"
        suggestion = None
        if available:
            suggestion = "Available plugins:\n  - " + "\n  - ".join(available)
        super().__init__(message, suggestion)


class ProviderError(LaunchKitError):
    """A capability provider failed during discovery, generation or deployment."""

    def __init__(self, plugin: str, phase: str, cause: Exception):
        self.plugin_name = plugin
        self.cause = cause
        message = f"Plugin '{plugin}' failed during {phase}: {cause}"
        super().__init__(message)
        # the message already names phase and plugin
        self.phase = phase
        self.plugin = plugin


class DiscoveryConflictError(LaunchKitError):
    """Two plugins discovered the same configuration key."""

    def __init__(self, key: str, first: str, second: str):
        self.key = key
        message = f"Plugins '{first}' and '{second}' both discovered '{key}'"
        suggestion = "Disable one of the plugins with --enabled-plugins"
        super().__init__(message, suggestion)


class ClusterCommandError(LaunchKitError):
    """A kubectl invocation failed."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command '{' '.join(command)}' failed with exit code {returncode}"
        if stderr:
            message += f": {stderr.strip()}"
        suggestion = (
            "Check that kubectl is installed and the cluster is reachable:\n"
            "  kubectl cluster-info\n\n"
            "Use --kubeconfig to select a different cluster."
        )
        super().__init__(message, suggestion)


class LLMError(LaunchKitError):
    """Errors related to LLM provider operations."""

    pass


class LLMProviderNotAvailableError(LLMError):
    """LLM provider not available (missing API key, etc.)."""

    def __init__(self, provider_name: str):
        message = f"LLM provider '{provider_name}' is not available."
        suggestion = (
            "Pass the API key on the command line:\n"
            "  l8k run --llm-api-key <your-api-key> ...\n\n"
            "or set it in the environment:\n"
            "  export L8K_LLM_API_KEY=<your-api-key>"
        )
        super().__init__(message, suggestion)


class LLMAPIError(LLMError):
    """LLM API call failed."""

    def __init__(self, provider_name: str, error_message: str):
        message = f"{provider_name} API call failed: {error_message}"
        suggestion = (
            "This could be due to:\n"
            "  - Network connectivity issues\n"
            "  - API rate limiting\n"
            "  - Invalid API key or endpoint\n\n"
            "Retry the command, or select the profile manually with\n"
            "  --fabric, --deployment-type and --multirail"
        )
        super().__init__(message, suggestion)


class LowConfidenceRecommendationError(LLMError):
    """The LLM declined to commit to a recommendation."""

    def __init__(self, reasoning: str = ""):
        self.reasoning = reasoning
        message = (
            "Couldn't select a deployment profile based on the user prompt. "
            f"Reason: {reasoning or 'not given'}"
        )
        suggestion = (
            "Try again with a more specific prompt, or use the CLI flags\n"
            "  --fabric, --deployment-type, --multirail\n"
            "to select the profile manually."
        )
        super().__init__(message, suggestion)


class ExtractionError(LLMError):
    """LLM output could not be parsed into a profile."""

    def __init__(self, error_details: str):
        message = f"Failed to parse LLM response: {error_details}"
        suggestion = (
            "The LLM returned an unexpected format.\n"
            "Re-run the prompt (LLM responses can vary) or ask the assistant\n"
            "to answer with the JSON profile recommendation."
        )
        super().__init__(message, suggestion)


class NothingToExtractError(ExtractionError):
    """No LLM response has been received yet."""

    def __init__(self):
        super().__init__("no response to extract profile from")
        self.suggestion = "Ask a question first to get a profile recommendation."


class SessionCancelledError(LLMError):
    """The user left the interactive session."""

    def __init__(self):
        super().__init__("Session cancelled by user")


class OperationCancelledError(LaunchKitError):
    """The run was cancelled before a provider call."""

    def __init__(self):
        super().__init__("Operation cancelled")


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, LaunchKitError):
        output = f"[red]Error:[/red] {escape(error.message)}"
        if error.suggestion:
            output += f"\n\n[yellow]{escape(error.suggestion)}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {escape(str(error))}"
