"""``pyproject.toml`` generation for scaffolded projects.

The manifest declares exactly the third-party distributions the emitted
sources import. Each archetype generator reports the imports it used and
this module maps them to pinned requirement strings, so the manifest can
never drift from the code.
"""

from __future__ import annotations

from collections.abc import Iterable

from netgen.errors import SynthesisError

from .templates import TemplateRenderer

# Import name -> requirement string. Import and distribution names coincide
# for everything netgen emits.
DEPENDENCY_SPECS: dict[str, str] = {
    "aiomysql": "aiomysql>=0.2",
    "asyncpg": "asyncpg>=0.29",
    "fastapi": "fastapi>=0.110",
    "structlog": "structlog>=24.1",
    "uvicorn": "uvicorn>=0.29",
}


class ManifestGenerator:
    """Renders the ``pyproject.toml`` of a generated project."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def generate(
        self,
        project_name: str,
        description: str,
        imports: Iterable[str],
        modules: Iterable[str],
    ) -> str:
        """Render the manifest.

        Args:
            project_name: Distribution name and console-script name.
            description: One-line project summary.
            imports: Top-level third-party modules the sources import.
            modules: Top-level modules shipped by the project, entry point
                (``main``) first.

        Returns:
            The ``pyproject.toml`` contents.

        Raises:
            SynthesisError: If an import has no known distribution.
        """
        context = {
            "project_name": project_name,
            "description": description,
            "dependencies": requirements_for(imports),
            "modules": list(modules),
        }
        return self.renderer.render("manifest/pyproject.toml.j2", context)


def requirements_for(imports: Iterable[str]) -> list[str]:
    """Return sorted, de-duplicated requirement strings for *imports*."""
    requirements: set[str] = set()
    for name in imports:
        try:
            requirements.add(DEPENDENCY_SPECS[name])
        except KeyError:
            raise SynthesisError(f"No distribution known for import {name!r}") from None
    return sorted(requirements)
