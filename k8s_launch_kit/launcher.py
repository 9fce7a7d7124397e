"""
Workflow orchestration for ``l8k run``.

The launcher walks a fixed sequence of phases:

    INIT -> DISCOVERY -> REQUIREMENTS -> RESOLUTION -> GENERATION -> DEPLOYMENT -> DONE

DISCOVERY and DEPLOYMENT run only when requested. The first error moves the
run to FAILED and is re-raised with the phase (and plugin) it happened in.
Plugins are called one at a time; files already written by an earlier plugin
are left on disk when a later one fails.
"""

import copy
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from k8s_launch_kit.config import (
    DEFAULTS_CONFIG_PATH,
    LaunchKubernetesConfig,
    load_config_document,
    load_full_config,
    save_full_config,
)
from k8s_launch_kit.context import RunContext
from k8s_launch_kit.exceptions import (
    ConfigurationError,
    DiscoveryConflictError,
    ExtractionError,
    LaunchKitError,
    LLMError,
    LLMProviderNotAvailableError,
    ProviderError,
    SessionCancelledError,
    UnknownProviderError,
)
from k8s_launch_kit.kube import KubeClient
from k8s_launch_kit.llm import get_provider
from k8s_launch_kit.llm.base import LLMProvider
from k8s_launch_kit.llm.session import (
    INTERACTIVE_PROMPT_SUFFIX,
    ChatSession,
    build_system_prompt,
    read_prompt_file,
    select_profile,
)
from k8s_launch_kit.models.descriptors import RequirementsDescriptor
from k8s_launch_kit.models.profile import ResolvedProfile
from k8s_launch_kit.options import Options
from k8s_launch_kit.plugins import PLUGINS, CapabilityProvider, build_plugins
from k8s_launch_kit.profiles import ProfileCatalog, resolve_profile
from k8s_launch_kit.util.files import replace_directory
from k8s_launch_kit.util.progress import Output

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    INIT = "init"
    DISCOVERY = "discovery"
    REQUIREMENTS = "requirements"
    RESOLUTION = "resolution"
    GENERATION = "generation"
    DEPLOYMENT = "deployment"
    DONE = "done"
    FAILED = "failed"


def _leaf_paths(
    data: dict[str, Any], prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], Any]]:
    """Yield (path, value) for every non-mapping value of a nested dict."""
    for key, value in data.items():
        path = prefix + (key,)
        if isinstance(value, dict) and value:
            yield from _leaf_paths(value, path)
        else:
            yield path, value


def _set_path(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    for key in path[:-1]:
        data = data.setdefault(key, {})
    data[path[-1]] = copy.deepcopy(value)


def merge_discovered(partials: list[tuple[str, dict[str, Any]]]) -> dict[str, Any]:
    """
    Merge the partial documents plugins discovered.

    Args:
        partials: (plugin name, partial document) in plugin order

    Returns:
        The merged document

    Raises:
        DiscoveryConflictError: If two plugins set the same key, or one sets a
            key inside a value another plugin set
    """
    merged: dict[str, Any] = {}
    owners: dict[tuple[str, ...], str] = {}

    for name, partial in partials:
        for path, value in _leaf_paths(partial):
            for owned, owner in owners.items():
                shorter, longer = sorted((owned, path), key=len)
                if longer[: len(shorter)] == shorter:
                    raise DiscoveryConflictError(".".join(shorter), owner, name)
            owners[path] = name
            _set_path(merged, path, value)

    return merged


def overlay(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``updates`` onto a copy of ``base``; mappings merge, anything else replaces."""
    result = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = overlay(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class Launcher:
    """
    Runs the l8k workflow for one set of options.

    Args:
        options: Run options
        output: User-facing output (stdout by default)
        plugins: Plugin registry, name -> class
        client_factory: Builds the cluster client from a kubeconfig path
        llm_factory: Builds the LLM provider from ``Options.llm_config()``
        input_func: Reads a line in the interactive session
        catalog: Profile catalog (``options.profiles_dir`` by default)
    """

    def __init__(
        self,
        options: Options,
        output: Output | None = None,
        plugins: dict[str, type[CapabilityProvider]] | None = None,
        client_factory: Callable[[str | None], KubeClient] | None = None,
        llm_factory: Callable[[dict], LLMProvider] | None = None,
        input_func: Callable[[str], str] = input,
        catalog: ProfileCatalog | None = None,
    ):
        self.options = options
        self.output = output or Output()
        self.registry = PLUGINS if plugins is None else plugins
        self.client_factory = client_factory or KubeClient
        self.llm_factory = llm_factory or get_provider
        self.input_func = input_func
        self.catalog = catalog or ProfileCatalog(options.profiles_dir)
        self.ctx = RunContext(output=self.output)

        self.state: WorkflowState | None = None
        self.history: list[WorkflowState] = []
        self.plugins: dict[str, CapabilityProvider] = {}
        self.config: LaunchKubernetesConfig | None = None
        self.requirements: RequirementsDescriptor | None = None
        self.resolved: list[ResolvedProfile] = []
        self.generated: dict[str, dict[str, str]] = {}
        self._client: KubeClient | None = None

    def cancel(self):
        """Stop before the next plugin call."""
        self.ctx.cancel()

    def run(self) -> WorkflowState:
        """
        Execute the workflow.

        Returns:
            WorkflowState.DONE

        Raises:
            LaunchKitError: The first error, annotated with its phase
        """
        try:
            self._init()
            self.output.header("NVIDIA Kubernetes Launch Kit")
            logger.info("Starting l8k workflow")

            config_path = self._discover()
            if not self._acquire_requirements(config_path):
                self._enter(WorkflowState.DONE)
                return self.state

            self._resolve()
            self._generate()
            if self.options.deploy:
                self._deploy()
        except Exception:
            self._enter(WorkflowState.FAILED)
            raise

        self.output.success("Workflow completed successfully")
        logger.info("l8k workflow completed successfully")
        self._enter(WorkflowState.DONE)
        return self.state

    def _enter(self, state: WorkflowState):
        logger.debug("Entering %s phase", state.value)
        self.state = state
        self.history.append(state)

    @contextmanager
    def _phase(self, state: WorkflowState) -> Iterator[None]:
        """Enter a phase and annotate errors escaping it."""
        self._enter(state)
        try:
            yield
        except LaunchKitError as e:
            e.add_context(state.value)
            raise
        except OSError as e:
            raise LaunchKitError(str(e)).add_context(state.value) from e

    @contextmanager
    def _plugin_scope(self, plugin: CapabilityProvider) -> Iterator[None]:
        """Annotate errors raised on behalf of a plugin; wrap foreign ones."""
        self.ctx.raise_if_cancelled()
        phase = self.state.value if self.state else ""
        try:
            yield
        except LaunchKitError as e:
            e.add_context(phase, plugin.name)
            raise
        except Exception as e:
            raise ProviderError(plugin.name, phase, e) from e

    def _plugin_for(self, resolved: ResolvedProfile) -> CapabilityProvider:
        plugin = self.plugins.get(resolved.plugin)
        if plugin is None:
            raise UnknownProviderError(resolved.plugin, sorted(self.plugins))
        return plugin

    def _client_for_run(self) -> KubeClient:
        if self._client is None:
            self._client = self.client_factory(self.options.kubeconfig)
        return self._client

    def _init(self):
        with self._phase(WorkflowState.INIT):
            options = self.options
            if options.prompt and options.llm_interactive:
                raise ConfigurationError(
                    "--prompt and --llm-interactive cannot be used together",
                    "Use --prompt for a one-shot recommendation or "
                    "--llm-interactive for a chat session",
                )
            if options.deploy and not options.save_deployment_files:
                raise ConfigurationError(
                    "--deploy requires generated files directory; provide --save-deployment-files"
                )
            if options.prompt and not Path(options.prompt).is_file():
                raise ConfigurationError(f"prompt file {options.prompt} does not exist")
            if not options.enabled_plugins:
                raise ConfigurationError(
                    "no plugins enabled", f"Available plugins: {', '.join(sorted(self.registry))}"
                )

            self.plugins = build_plugins(options.enabled_plugins, self.registry)
            logger.info("Enabled plugins: %s", ", ".join(self.plugins))

    def _discover(self) -> str | None:
        """Run discovery if requested; return the config path the run should load."""
        options = self.options
        if not options.discover_cluster_config:
            return options.user_config

        with self._phase(WorkflowState.DISCOVERY):
            self.output.section("Phase 1: Cluster Discovery")

            if options.user_config:
                self.output.info(f"Using provided configuration: {options.user_config}")
                logger.info("Using provided user config %s", options.user_config)
                return options.user_config

            if not options.save_cluster_config:
                raise ConfigurationError(
                    "no output path provided for discovered cluster config",
                    "Pass --save-cluster-config <path> together with --discover-cluster-config",
                )

            defaults_path = options.defaults_config or DEFAULTS_CONFIG_PATH
            defaults = load_config_document(defaults_path)
            logger.info("Loaded defaults from %s", defaults_path)

            # a previous run's profile and discovery results are not carried over
            base = {key: value for key, value in defaults.items() if key != "profile"}
            selector = (defaults.get("clusterConfig") or {}).get("nodeSelector") or {}
            base["clusterConfig"] = {
                "capabilities": {"nodes": {}},
                "pfs": [],
                "workerNodes": [],
                "nodeSelector": dict(selector),
            }

            self.output.info("Discovering cluster capabilities")
            client = self._client_for_run()
            partials = []
            for plugin in self.plugins.values():
                with self.output.progress(
                    f"Discovering capabilities for {plugin.name}",
                    f"Discovered capabilities for {plugin.name}",
                    f"Discovery failed for {plugin.name}",
                ):
                    with self._plugin_scope(plugin):
                        partial = plugin.discover_capabilities(
                            self.ctx, client, copy.deepcopy(base)
                        )
                partials.append((plugin.name, partial or {}))

            document = overlay(base, merge_discovered(partials))
            saved = save_full_config(document, options.save_cluster_config)
            self.output.success(f"Configuration saved: {saved}")
            logger.info("Discovered cluster config saved to %s", saved)
            return options.save_cluster_config

    def _acquire_requirements(self, config_path: str | None) -> bool:
        """
        Build and freeze the requirements descriptor.

        Returns:
            False when no requirement source was given (nothing to generate)
        """
        with self._phase(WorkflowState.REQUIREMENTS):
            options = self.options
            if not options.has_requirement_flags and not options.uses_llm:
                self.output.info("Profiles not configured, skipping deployment file generation")
                logger.info("No profile flags, prompt or interactive session given")
                return False

            from_options = all(
                plugin.has_requirements_from_options(options) for plugin in self.plugins.values()
            )
            if not from_options and not options.uses_llm:
                missing = [
                    name
                    for name, plugin in self.plugins.items()
                    if not plugin.has_requirements_from_options(options)
                ]
                raise ConfigurationError(
                    f"profile flags are incomplete for plugin(s): {', '.join(missing)}",
                    "Pass both --fabric and --deployment-type, "
                    "or let the AI choose with --prompt or --llm-interactive",
                )

            self.config = load_full_config(config_path)
            if self.config.cluster_config is None:
                raise ConfigurationError(
                    f"cluster config {config_path} has no clusterConfig section",
                    "Generate one with --discover-cluster-config --save-cluster-config <path>",
                )

            requirements = RequirementsDescriptor()
            if from_options:
                for plugin in self.plugins.values():
                    with self._plugin_scope(plugin):
                        plugin.build_requirements_from_options(options, requirements)
            else:
                self.output.section("Profile Selection (AI-Assisted)")
                if options.llm_interactive:
                    fields = self._run_interactive_session()
                else:
                    fields = self._select_with_prompt()
                for plugin in self.plugins.values():
                    with self._plugin_scope(plugin):
                        plugin.build_requirements_from_llm_response(fields, requirements)
                logger.info("LLM reasoning: %s", fields.get("reasoning", ""))

            self.requirements = requirements.freeze()
            self.config.profile = self.requirements

            self.output.success("Profile selected")
            self.output.info(f"  Fabric: {requirements.fabric}")
            self.output.info(f"  Deployment: {requirements.deployment}")
            for name, value in sorted(requirements.features.items()):
                self.output.info(f"  {name}: {str(value).lower()}")
            logger.info("Selected requirements: %s", requirements.to_dict())
            return True

    def _llm(self) -> LLMProvider:
        try:
            llm = self.llm_factory(self.options.llm_config())
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not llm.is_available():
            raise LLMProviderNotAvailableError(self.options.llm_vendor)
        return llm

    def _addenda(self) -> list[str]:
        return [plugin.system_prompt_addendum() for plugin in self.plugins.values()]

    def _select_with_prompt(self) -> dict[str, str]:
        prompt_text = read_prompt_file(self.options.prompt)
        llm = self._llm()
        system_prompt = build_system_prompt(self.config.cluster_config, self._addenda())

        self.output.info("Analyzing requirements with AI")
        logger.info("Selecting a profile with %s (%s)", llm.vendor, llm.get_model_name())
        with self.output.progress(
            "Waiting for AI recommendation", "Recommendation received", "AI selection failed"
        ):
            return select_profile(prompt_text, system_prompt, llm)

    def _read_line(self, prompt: str) -> str:
        try:
            return self.input_func(prompt)
        except EOFError:
            raise SessionCancelledError() from None

    def _run_interactive_session(self) -> dict[str, str]:
        """
        Chat until the user types ``generate`` (returns the extracted fields) or ``exit``.

        A failed LLM call is reported and the conversation continues.
        """
        session = ChatSession.create(self.config.cluster_config, self._llm(), self._addenda())
        logger.info("Starting interactive LLM session")

        self.output.info("Ask questions about network configuration or describe your requirements.")
        self.output.info("Type 'generate' to generate manifests based on the recommended profile.")
        self.output.info("Type 'exit' or 'quit' to cancel.")

        while True:
            self.ctx.raise_if_cancelled()
            text = self._read_line("You: ").strip()
            if not text:
                continue

            command = text.lower()
            if command in ("exit", "quit"):
                raise SessionCancelledError()

            if command == "generate":
                self.output.info("Extracting profile from last response...")
                try:
                    fields = session.extract_profile()
                except ExtractionError as e:
                    self.output.error(e.message)
                    if e.suggestion:
                        self.output.info(e.suggestion)
                    continue

                if fields.get("confidence", "").lower() == "low":
                    self.output.warning("The LLM has low confidence in this recommendation.")
                    self.output.info(f"Reason: {fields.get('reasoning', '')}")
                    confirm = self._read_line("Do you want to proceed anyway? (yes/no): ")
                    if confirm.strip().lower() not in ("yes", "y"):
                        self.output.info(
                            "Cancelled. Ask another question or refine your requirements."
                        )
                        continue

                self.output.info("Proceeding with profile generation...")
                return fields

            try:
                with self.output.progress(
                    "Waiting for AI response", "Response received", "AI request failed"
                ):
                    reply = session.send_message(text)
            except LLMError as e:
                self.output.error(e.message)
                continue

            self.output.markdown(reply + INTERACTIVE_PROMPT_SUFFIX)

    def _resolve(self):
        with self._phase(WorkflowState.RESOLUTION):
            capabilities = self.config.cluster_config.capabilities
            for plugin in self.plugins.values():
                with self._plugin_scope(plugin):
                    resolved = resolve_profile(
                        self.requirements, capabilities, plugin.name, self.catalog
                    )
                self.output.success(f"Selected profile {resolved.name} for {plugin.name}")
                self.resolved.append(resolved)

    def _generate(self):
        with self._phase(WorkflowState.GENERATION):
            self.output.section("Deployment File Generation")
            output_root = self.options.save_deployment_files

            for resolved in self.resolved:
                plugin = self._plugin_for(resolved)
                self.output.info(f"Generating files for profile: {resolved.name}")
                with self._plugin_scope(plugin):
                    files = plugin.generate_files(resolved, self.config)
                self.generated[plugin.name] = files

                if output_root:
                    output_dir = Path(output_root) / plugin.name
                    written = replace_directory(output_dir, files)
                    self.output.success(f"Saved {len(written)} file(s) to: {output_dir}")
                    logger.info("Saved deployment files to %s", output_dir)
                else:
                    self.output.info(
                        f"Rendered {len(files)} file(s); pass --save-deployment-files to write them"
                    )

    def _deploy(self):
        with self._phase(WorkflowState.DEPLOYMENT):
            self.output.section("Cluster Deployment")
            client = self._client_for_run()

            for resolved in self.resolved:
                plugin = self._plugin_for(resolved)
                manifests_dir = Path(self.options.save_deployment_files) / plugin.name
                logger.info("Deploying profile %s from %s", resolved.name, manifests_dir)
                with self.output.progress(
                    f"Deploying profile {resolved.name}",
                    f"Profile deployed: {resolved.name}",
                    f"Deployment failed: {resolved.name}",
                ):
                    with self._plugin_scope(plugin):
                        plugin.deploy(self.ctx, resolved, client, manifests_dir)
