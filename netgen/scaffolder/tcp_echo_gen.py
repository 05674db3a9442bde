"""TCP echo server generation.

Produces a manifest and a single ``main.py`` whose asyncio accept loop frames
each connection with the synthesized read-mode fragment and writes every
frame straight back.
"""

from __future__ import annotations

from netgen.config import Archetype, TcpEchoConfig
from netgen.errors import SynthesisError

from .ci_gen import CiGenerator
from .emitter import FileSet
from .manifest_gen import ManifestGenerator
from .read_mode import describe, synthesize
from .templates import TemplateRenderer
from .validator import ValidatedConfig

ENTRY_POINT = "main.py"


class TcpEchoGenerator:
    """Generates the TCP echo archetype."""

    archetype = Archetype.TCP_ECHO

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer
        self.manifest_gen = ManifestGenerator(renderer)
        self.ci_gen = CiGenerator(renderer)

    def generate(self, validated: ValidatedConfig) -> FileSet:
        """Return the file set for a validated TCP echo config."""
        config = validated.config
        if validated.archetype is not self.archetype or not isinstance(config, TcpEchoConfig):
            raise SynthesisError(
                f"{type(self).__name__} cannot generate {validated.archetype.value} configs"
            )

        context = {
            "project_name": config.project_name,
            "port": config.port,
            "tracing": config.tracing,
            "read_mode_fragment": synthesize(config.read_mode, self.renderer),
            "read_mode_summary": describe(config.read_mode),
        }
        imports = ["structlog"] if config.tracing else []
        modules = ["main"]

        files: FileSet = {
            "pyproject.toml": self.manifest_gen.generate(
                config.project_name, "TCP echo server", imports, modules
            ),
            ENTRY_POINT: self.renderer.render("tcp_echo/main.py.j2", context),
        }
        if config.github_actions:
            files.update(self.ci_gen.generate(config.project_name, modules))
        return files
