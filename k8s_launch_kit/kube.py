"""
Cluster access through the kubectl binary.

Every call is attempted once; failures surface as ClusterCommandError.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from k8s_launch_kit.exceptions import ClusterCommandError

DEFAULT_TIMEOUT = 120

logger = logging.getLogger(__name__)


class KubeClient:
    """
    Thin wrapper around ``kubectl``.

    Args:
        kubeconfig: Path to a kubeconfig file (kubectl's default when None)
        kubectl: kubectl executable name or path
        timeout: Seconds before a single kubectl call is abandoned
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        kubectl: str = "kubectl",
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.kubeconfig = kubeconfig
        self.kubectl = kubectl
        self.timeout = timeout

    def _command(self, *args: str) -> list[str]:
        cmd = [self.kubectl]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        cmd.extend(args)
        return cmd

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd = self._command(*args)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ClusterCommandError(cmd, 127, f"{self.kubectl} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ClusterCommandError(cmd, -1, f"timed out after {self.timeout}s") from e

        if check and result.returncode != 0:
            raise ClusterCommandError(cmd, result.returncode, result.stderr)
        return result

    def get_json(
        self,
        resource: str,
        namespace: str | None = None,
        selector: str | None = None,
    ) -> dict[str, Any]:
        """
        Fetch resources as parsed JSON (``kubectl get ... -o json``).

        Args:
            resource: Resource type, optionally ``type/name``
            namespace: Namespace to query
            selector: Label selector (``key=value,...``)
        """
        args = ["get", resource, "-o", "json"]
        if namespace:
            args.extend(["-n", namespace])
        if selector:
            args.extend(["-l", selector])

        result = self._run(*args)
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ClusterCommandError(
                self._command(*args), 0, f"invalid JSON output: {e}"
            ) from e

    def crd_exists(self, name: str) -> bool:
        """
        Whether a CustomResourceDefinition is installed.

        Raises:
            ClusterCommandError: If kubectl fails for any reason other than NotFound
        """
        result = self._run("get", "crd", name, check=False)
        if result.returncode == 0:
            return True
        if "NotFound" in result.stderr:
            return False
        raise ClusterCommandError(
            self._command("get", "crd", name), result.returncode, result.stderr
        )

    def apply(self, manifests_dir: str | Path) -> str:
        """Apply every manifest in a directory; returns kubectl's output."""
        result = self._run("apply", "-f", str(manifests_dir))
        logger.info("kubectl apply output:\n%s", result.stdout.strip())
        return result.stdout
