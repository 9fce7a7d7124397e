"""Profile catalog dataclasses.

A profile maps a combination of requirements and node capabilities to a set of
deployment templates owned by one plugin. Predicates that a definition leaves
out are wildcards: they match any value.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class ProfileDefinition:
    """A catalog entry as read from ``<catalog>/<entry>/profile.yaml``."""

    name: str
    plugin: str
    version: str = "1"
    description: str = ""
    requirements: dict[str, str | bool] = field(default_factory=dict)
    capabilities: dict[str, bool] = field(default_factory=dict)
    templates: list[str] = field(default_factory=list)
    deployment_guide: str = ""
    source_dir: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], source_dir: Path | None = None) -> "ProfileDefinition":
        return cls(
            name=data["name"],
            plugin=data["plugin"],
            version=str(data.get("version", "1")),
            description=data.get("description", ""),
            requirements=dict(data.get("profileRequirements") or {}),
            capabilities=dict(data.get("nodeCapabilities") or {}),
            templates=list(data.get("templates") or []),
            deployment_guide=data.get("deploymentGuide", ""),
            source_dir=source_dir,
        )

    def bind(self) -> "ResolvedProfile":
        """Bind the definition, rewriting template and guide references to absolute paths."""
        base = (self.source_dir or Path.cwd()).resolve()
        return ResolvedProfile(
            name=self.name,
            plugin=self.plugin,
            version=self.version,
            description=self.description,
            requirements=dict(self.requirements),
            capabilities=dict(self.capabilities),
            templates=tuple(base / template for template in self.templates),
            deployment_guide=base / self.deployment_guide if self.deployment_guide else None,
            source_dir=base,
        )


@dataclass(frozen=True)
class ResolvedProfile:
    """A profile selected for a plugin, with absolute template locations."""

    name: str
    plugin: str
    version: str
    description: str
    requirements: dict[str, str | bool]
    capabilities: dict[str, bool]
    templates: tuple[Path, ...]
    deployment_guide: Path | None
    source_dir: Path
