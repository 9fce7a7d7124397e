"""
CLI entry point for l8k.
"""

import logging
from functools import wraps

import typer
from rich.console import Console
from rich.table import Table

from k8s_launch_kit import __version__
from k8s_launch_kit.exceptions import LaunchKitError, format_error_for_cli
from k8s_launch_kit.launcher import Launcher
from k8s_launch_kit.options import DEFAULT_PLUGINS, Options
from k8s_launch_kit.profiles import ProfileCatalog
from k8s_launch_kit.util.logging import configure_logging
from k8s_launch_kit.util.progress import Output

app = typer.Typer(
    name="l8k",
    help="NVIDIA Kubernetes Launch Kit: discover, select and deploy cluster networking profiles",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LaunchKitError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted[/yellow]")
            raise typer.Exit(1)
        except Exception as e:
            logger.exception("Unexpected error")
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print("\n[yellow]This may be a bug. Please report it.[/yellow]")
            raise typer.Exit(1)

    return wrapper


def parse_plugin_list(value: str) -> list[str]:
    """``"a, b"`` -> ``["a", "b"]``"""
    return [name.strip() for name in value.split(",") if name.strip()]


@app.command()
@handle_errors
def run(
    discover_cluster_config: bool = typer.Option(
        False, "--discover-cluster-config", help="Discover cluster capabilities with kubectl"
    ),
    save_cluster_config: str = typer.Option(
        None, "--save-cluster-config", help="Where to write the discovered cluster config"
    ),
    user_config: str = typer.Option(
        None, "--user-config", help="Use an existing cluster config instead of discovering"
    ),
    defaults_config: str = typer.Option(
        None, "--defaults-config", help="Defaults document used as the discovery base"
    ),
    profiles_dir: str = typer.Option(
        None, "--profiles-dir", help="Profile catalog directory (default: built-in catalog)"
    ),
    fabric: str = typer.Option(None, "--fabric", help="Fabric: ethernet or infiniband"),
    deployment_type: str = typer.Option(
        None, "--deployment-type", help="Deployment: sriov, rdma_shared or host_device"
    ),
    multirail: bool = typer.Option(False, "--multirail", help="Use every PF as a separate rail"),
    spectrum_x: bool = typer.Option(False, "--spectrum-x", help="Spectrum-X Ethernet fabric"),
    ai: bool = typer.Option(False, "--ai", help="Tune for AI workloads"),
    prompt: str = typer.Option(
        None, "--prompt", help="File describing your requirements; the AI selects the profile"
    ),
    llm_interactive: bool = typer.Option(
        False, "--llm-interactive", help="Chat with the AI to select the profile"
    ),
    llm_vendor: str = typer.Option(
        "openai",
        "--llm-vendor",
        help="LLM vendor: openai, openai-azure, anthropic, gemini or mock",
    ),
    llm_model: str = typer.Option(None, "--llm-model", help="LLM model (deployment for Azure)"),
    llm_api_key: str = typer.Option(
        None, "--llm-api-key", help="LLM API key (default: $L8K_LLM_API_KEY)"
    ),
    llm_api_url: str = typer.Option(None, "--llm-api-url", help="LLM API base URL"),
    save_deployment_files: str = typer.Option(
        None, "--save-deployment-files", help="Directory for generated manifests"
    ),
    deploy: bool = typer.Option(False, "--deploy", help="Apply generated manifests to the cluster"),
    kubeconfig: str = typer.Option(None, "--kubeconfig", help="Path to kubeconfig"),
    enabled_plugins: str = typer.Option(
        ",".join(DEFAULT_PLUGINS), "--enabled-plugins", help="Comma-separated plugin names"
    ),
    log_level: str = typer.Option("info", "--log-level", help="debug, info, warning or error"),
    log_file: str = typer.Option(None, "--log-file", help="Write logs to this file"),
    enable_logging: bool = typer.Option(False, "--enable-logging", help="Log to stderr"),
):
    """Discover the cluster, select a profile and generate (and optionally deploy) manifests."""
    options = Options(
        discover_cluster_config=discover_cluster_config,
        save_cluster_config=save_cluster_config,
        user_config=user_config,
        defaults_config=defaults_config,
        kubeconfig=kubeconfig,
        profiles_dir=profiles_dir,
        fabric=fabric,
        deployment_type=deployment_type,
        multirail=multirail,
        spectrum_x=spectrum_x,
        ai=ai,
        prompt=prompt,
        llm_interactive=llm_interactive,
        llm_vendor=llm_vendor,
        llm_model=llm_model,
        llm_api_key=llm_api_key,
        llm_api_url=llm_api_url,
        save_deployment_files=save_deployment_files,
        deploy=deploy,
        enabled_plugins=parse_plugin_list(enabled_plugins),
        log_level=log_level,
        log_file=log_file,
        enable_logging=enable_logging,
    )
    configure_logging(level=log_level, log_file=log_file, enabled=enable_logging)

    launcher = Launcher(options, output=Output(console))
    launcher.run()


@app.command()
@handle_errors
def profiles(
    profiles_dir: str = typer.Option(
        None, "--profiles-dir", help="Profile catalog directory (default: built-in catalog)"
    ),
    plugin: str = typer.Option(None, "--plugin", help="Only show profiles of this plugin"),
):
    """List the profiles in the catalog, in resolution order."""
    catalog = ProfileCatalog(profiles_dir)
    entries = catalog.for_plugin(plugin) if plugin else catalog.entries()

    if not entries:
        console.print("[yellow]No profiles found[/yellow]")
        return

    table = Table(title=f"Profiles ({catalog.root})")
    table.add_column("Name", style="cyan")
    table.add_column("Plugin")
    table.add_column("Requirements")
    table.add_column("Node capabilities")
    table.add_column("Description")

    for entry in entries:
        table.add_row(
            entry.name,
            entry.plugin,
            _format_predicates(entry.requirements),
            _format_predicates(entry.capabilities),
            entry.description,
        )
    console.print(table)


def _format_predicates(predicates: dict) -> str:
    declared = {
        key: value for key, value in predicates.items() if value is not None and value != ""
    }
    if not declared:
        return "any"
    return "\n".join(
        f"{key}={str(value).lower() if isinstance(value, bool) else value}"
        for key, value in declared.items()
    )


@app.command()
def version():
    """Show the l8k version."""
    console.print(f"l8k {__version__}")


if __name__ == "__main__":
    app()
