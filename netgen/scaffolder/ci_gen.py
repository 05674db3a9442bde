"""GitHub Actions workflow generation."""

from __future__ import annotations

from collections.abc import Iterable

from .templates import TemplateRenderer

CI_WORKFLOW_PATH = ".github/workflows/ci.yml"


class CiGenerator:
    """Renders a CI workflow that installs the project and byte-compiles it."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def generate(self, project_name: str, modules: Iterable[str]) -> dict[str, str]:
        """Return a one-entry file set holding the workflow."""
        context = {"project_name": project_name, "modules": list(modules)}
        return {CI_WORKFLOW_PATH: self.renderer.render("ci/ci.yml.j2", context)}
