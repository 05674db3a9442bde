"""Main scaffolding orchestrator.

Takes a raw config mapping or a config model, validates it, dispatches to the
generator for its archetype and emits the resulting file set. Each call is
independent: nothing is cached between runs, so separate runs into distinct
output directories can execute in parallel.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from netgen.config import Archetype, ProjectConfig
from netgen.errors import SynthesisError

from .emitter import FileSet, emit
from .http_gen import HttpServiceGenerator
from .tcp_echo_gen import TcpEchoGenerator
from .tcp_worker_gen import TcpWorkerGenerator
from .templates import TemplateRenderer
from .validator import ValidatedConfig, validate

ArchetypeGenerator = Union[TcpEchoGenerator, TcpWorkerGenerator, HttpServiceGenerator]


class ProjectGenerator:
    """Main scaffolding orchestrator.

    Given a configuration for one archetype, produces:
    - ``pyproject.toml`` declaring exactly the dependencies the sources use
    - ``main.py`` (and ``handlers.py`` for HTTP services with a database)
    - ``.github/workflows/ci.yml`` when ``github_actions`` is set
    """

    def __init__(self, renderer: Optional[TemplateRenderer] = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.generators: dict[Archetype, ArchetypeGenerator] = {
            Archetype.TCP_ECHO: TcpEchoGenerator(self.renderer),
            Archetype.TCP_WORKER: TcpWorkerGenerator(self.renderer),
            Archetype.HTTP: HttpServiceGenerator(self.renderer),
        }

    # -- Public API --------------------------------------------------------

    def generate(self, validated: ValidatedConfig) -> FileSet:
        """Build the in-memory file set for a validated config."""
        try:
            generator = self.generators[validated.archetype]
        except KeyError:
            raise SynthesisError(f"No generator for archetype {validated.archetype!r}") from None
        return generator.generate(validated)

    def generate_project(
        self,
        config: Mapping[str, Any] | ProjectConfig,
        archetype: Archetype | str | None = None,
        out_dir: str | Path | None = None,
    ) -> list[Path]:
        """Validate, generate and emit a project.

        Validation and generation finish before the first byte is written,
        so an invalid config leaves the file system untouched.

        Args:
            config: Raw mapping or config model.
            archetype: Required for raw mappings.
            out_dir: Overrides the config's ``out_dir``; when both are
                unset the project name is used.

        Returns:
            The written file paths.
        """
        validated = validate(config, archetype)
        files = self.generate(validated)
        target = resolve_out_dir(out_dir, validated.config.out_dir, validated.project_name)
        return emit(files, target)


def generate(validated: ValidatedConfig, renderer: Optional[TemplateRenderer] = None) -> FileSet:
    """Build the file set for *validated* with a fresh :class:`ProjectGenerator`."""
    return ProjectGenerator(renderer).generate(validated)


def resolve_out_dir(
    cli_out_dir: str | Path | None,
    cfg_out_dir: str | Path | None,
    default_name: str,
) -> Path:
    """Pick the output directory: CLI override, then config value, then *default_name*."""
    for candidate in (cli_out_dir, cfg_out_dir):
        if candidate is not None and str(candidate):
            return Path(candidate)
    return Path(default_name)
