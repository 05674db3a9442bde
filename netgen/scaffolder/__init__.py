"""netgen scaffolder -- turns a service config into a project file tree.

Pipeline: :func:`validate` a raw config, :func:`generate` the in-memory file
set (the TCP archetypes call :func:`synthesize` for their framing code), then
:func:`emit` it to disk. :class:`ProjectGenerator` runs all three steps.

Quick usage::

    from netgen.scaffolder import ProjectGenerator

    ProjectGenerator().generate_project(
        {
            "project_name": "t1",
            "port": 4000,
            "read_mode": {"type": "lines", "max_line_len": 8192},
        },
        archetype="tcp-echo",
        out_dir="/tmp/t1",
    )
"""

from netgen.scaffolder.emitter import FileSet, emit
from netgen.scaffolder.generator import ProjectGenerator, generate, resolve_out_dir
from netgen.scaffolder.read_mode import synthesize
from netgen.scaffolder.templates import TemplateRenderer
from netgen.scaffolder.validator import ValidatedConfig, validate

__all__ = [
    "FileSet",
    "ProjectGenerator",
    "TemplateRenderer",
    "ValidatedConfig",
    "emit",
    "generate",
    "resolve_out_dir",
    "synthesize",
    "validate",
]
