"""
Template loading and rendering utilities using Jinja2.
"""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateError

TEMPLATE_SUFFIX = ".j2"


def to_yaml_value(value: Any) -> str:
    """Render booleans the way YAML spells them."""
    return str(value).lower() if isinstance(value, bool) else str(value)


def output_filename(template_path: str | Path) -> str:
    """Name of the rendered file: the template basename without ``.j2``."""
    name = Path(template_path).name
    if name.endswith(TEMPLATE_SUFFIX):
        name = name[: -len(TEMPLATE_SUFFIX)]
    return name


class TemplateRenderer:
    """
    Renders profile templates referenced by absolute path.

    One Jinja2 environment is created per template directory and cached, so
    templates in the same profile can ``{% include %}`` each other.
    """

    def __init__(self):
        self._envs: dict[Path, Environment] = {}
        self._template_cache: dict[Path, Template] = {}

    def _env_for(self, directory: Path) -> Environment:
        if directory not in self._envs:
            env = Environment(
                loader=FileSystemLoader(str(directory)),
                trim_blocks=True,
                lstrip_blocks=True,
                undefined=StrictUndefined,
                keep_trailing_newline=True,
            )
            env.filters["to_yaml_value"] = to_yaml_value
            self._envs[directory] = env
        return self._envs[directory]

    def load_template(self, template_path: str | Path) -> Template:
        """
        Load a Jinja2 template with caching.

        Raises:
            FileNotFoundError: If the template file does not exist
        """
        path = Path(template_path)
        if path not in self._template_cache:
            if not path.is_file():
                raise FileNotFoundError(f"Template not found: {path}")
            env = self._env_for(path.parent)
            self._template_cache[path] = env.get_template(path.name)
        return self._template_cache[path]

    def render(
        self, template_paths: list[Path] | tuple[Path, ...], context: dict
    ) -> dict[str, str]:
        """
        Render templates into a filename -> content mapping.

        Args:
            template_paths: Absolute template paths
            context: Template variables

        Returns:
            Rendered files keyed by output filename

        Raises:
            FileNotFoundError: If a template is missing
            ValueError: If a template fails to render or two templates share an output name
        """
        rendered: dict[str, str] = {}
        for template_path in template_paths:
            filename = output_filename(template_path)
            if filename in rendered:
                raise ValueError(f"Duplicate output file '{filename}' from {template_path}")
            template = self.load_template(template_path)
            try:
                rendered[filename] = template.render(**context)
            except TemplateError as e:
                raise ValueError(f"Failed to render template {template_path}: {e}") from e
        return rendered
