"""TCP worker-pool server generation.

Produces a manifest and a ``main.py`` in which connection handlers only
frame the stream and push each frame onto a bounded ``asyncio.Queue``;
``workers`` long-lived tasks consume it. The queue blocks producers when
full, so frames are never dropped.
"""

from __future__ import annotations

from netgen.config import Archetype, WorkerPoolConfig
from netgen.errors import SynthesisError

from .ci_gen import CiGenerator
from .emitter import FileSet
from .manifest_gen import ManifestGenerator
from .read_mode import describe, synthesize
from .templates import TemplateRenderer
from .validator import ValidatedConfig

ENTRY_POINT = "main.py"


class TcpWorkerGenerator:
    """Generates the TCP worker-pool archetype."""

    archetype = Archetype.TCP_WORKER

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer
        self.manifest_gen = ManifestGenerator(renderer)
        self.ci_gen = CiGenerator(renderer)

    def generate(self, validated: ValidatedConfig) -> FileSet:
        """Return the file set for a validated worker-pool config."""
        config = validated.config
        if validated.archetype is not self.archetype or not isinstance(config, WorkerPoolConfig):
            raise SynthesisError(
                f"{type(self).__name__} cannot generate {validated.archetype.value} configs"
            )

        context = {
            "project_name": config.project_name,
            "port": config.port,
            "tracing": config.tracing,
            "workers": config.workers,
            "event_buffer": config.event_buffer,
            "read_mode_fragment": synthesize(config.read_mode, self.renderer),
            "read_mode_summary": describe(config.read_mode),
        }
        imports = ["structlog"] if config.tracing else []
        modules = ["main"]

        files: FileSet = {
            "pyproject.toml": self.manifest_gen.generate(
                config.project_name, "TCP worker-pool server", imports, modules
            ),
            ENTRY_POINT: self.renderer.render("tcp_worker/main.py.j2", context),
        }
        if config.github_actions:
            files.update(self.ci_gen.generate(config.project_name, modules))
        return files
