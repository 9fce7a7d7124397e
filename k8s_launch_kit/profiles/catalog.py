"""Profile catalog loading and validation.

A catalog is a directory with one subdirectory per profile. Each subdirectory
holds a ``profile.yaml`` definition next to the templates and deployment guide
it references. Entries are always returned in lexicographic order of their
directory name, which is the order profile resolution visits them in.
"""

import json
import logging
from pathlib import Path

import yaml
from jsonschema import ValidationError, validate

from k8s_launch_kit.exceptions import CatalogError, ConfigurationError
from k8s_launch_kit.models.profile import ProfileDefinition

PACKAGE_ROOT = Path(__file__).parent.parent
DEFAULT_CATALOG_DIR = Path(__file__).parent / "definitions"
PROFILE_MANIFEST = "profile.yaml"

logger = logging.getLogger(__name__)

_SCHEMA_CACHE: dict[str, dict] = {}


def _load_profile_schema() -> dict:
    """Load and cache the profile definition JSON schema."""
    if "profile" not in _SCHEMA_CACHE:
        schema_file = PACKAGE_ROOT / "schema" / "profile.schema.json"
        _SCHEMA_CACHE["profile"] = json.loads(schema_file.read_text())
    return _SCHEMA_CACHE["profile"]


def validate_profile_schema(profile_data: dict) -> tuple[bool, list[str]]:
    """
    Validate profile data against JSON schema.

    Args:
        profile_data: Profile data as dict (from YAML)

    Returns:
        tuple: (is_valid, error_messages)
    """
    try:
        validate(instance=profile_data, schema=_load_profile_schema())
        return (True, [])
    except ValidationError as e:
        path = ".".join(str(p) for p in e.path) if e.path else "root"
        return (False, [f"Profile validation error at '{path}': {e.message}"])


def load_profile_definition(manifest: Path) -> ProfileDefinition:
    """
    Load one ``profile.yaml``.

    Raises:
        CatalogError: If the file cannot be read, parsed or validated
    """
    try:
        data = yaml.safe_load(manifest.read_text())
    except OSError as e:
        raise CatalogError(str(manifest), f"failed to read: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(str(manifest), f"failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(str(manifest), "expected a mapping at the top level")

    is_valid, errors = validate_profile_schema(data)
    if not is_valid:
        raise CatalogError(str(manifest), "; ".join(errors))

    return ProfileDefinition.from_dict(data, source_dir=manifest.parent)


class ProfileCatalog:
    """Read-only view over a directory of profile definitions."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root) if root else DEFAULT_CATALOG_DIR
        self._entries: list[ProfileDefinition] | None = None

    def entries(self) -> list[ProfileDefinition]:
        """
        All definitions, sorted by entry directory name (cached).

        Raises:
            ConfigurationError: If the catalog directory does not exist
            CatalogError: If a definition is invalid
        """
        if self._entries is None:
            if not self.root.is_dir():
                raise ConfigurationError(
                    f"Profile catalog directory not found: {self.root}",
                    "Pass --profiles-dir pointing at a directory of profile definitions",
                )

            entries = []
            for entry_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
                manifest = entry_dir / PROFILE_MANIFEST
                if not manifest.exists():
                    raise CatalogError(str(manifest), "missing profile manifest")
                entries.append(load_profile_definition(manifest))

            logger.debug("Loaded %d profile(s) from %s", len(entries), self.root)
            self._entries = entries
        return list(self._entries)

    def for_plugin(self, plugin_name: str) -> list[ProfileDefinition]:
        """Definitions owned by one plugin, in catalog order."""
        return [entry for entry in self.entries() if entry.plugin == plugin_name]

    def get(self, name: str) -> ProfileDefinition | None:
        for entry in self.entries():
            if entry.name == name:
                return entry
        return None
