"""HTTP service generation (FastAPI + uvicorn).

Produces a manifest, ``main.py`` and -- only when a database is enabled --
``handlers.py``. Every route becomes an ``async def`` returning its literal
body with status 200, registered with ``app.add_api_route`` in declaration
order. With a database, ``main.py`` builds the pool during the application
lifespan from the configured environment variable, and ``handlers.py`` hands
it to every handler through a FastAPI dependency.
"""

from __future__ import annotations

from typing import Any, Optional

from netgen.config import Archetype, DatabaseConfig, DatabaseKind, HttpConfig
from netgen.errors import SynthesisError

from .ci_gen import CiGenerator
from .emitter import FileSet
from .manifest_gen import ManifestGenerator
from .templates import TemplateRenderer
from .validator import ValidatedConfig

# Database kind -> import name of its asyncio driver.
DATABASE_DRIVERS: dict[DatabaseKind, str] = {
    DatabaseKind.POSTGRES: "asyncpg",
    DatabaseKind.MYSQL: "aiomysql",
}


class HttpServiceGenerator:
    """Generates the HTTP service archetype."""

    archetype = Archetype.HTTP

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer
        self.manifest_gen = ManifestGenerator(renderer)
        self.ci_gen = CiGenerator(renderer)

    def generate(self, validated: ValidatedConfig) -> FileSet:
        """Return the file set for a validated HTTP config."""
        config = validated.config
        if validated.archetype is not self.archetype or not isinstance(config, HttpConfig):
            raise SynthesisError(
                f"{type(self).__name__} cannot generate {validated.archetype.value} configs"
            )

        db = _database_context(config.database)
        context = {
            "project_name": config.project_name,
            "port": config.port,
            "tracing": config.tracing,
            "routes": [
                {
                    "path": route.path,
                    "method": route.method.value,
                    "handler": route.handler,
                    "response": route.response,
                }
                for route in config.routes
            ],
            "db": db,
        }

        imports = ["fastapi", "uvicorn"]
        modules = ["main"]
        if config.tracing:
            imports.append("structlog")
        if db is not None:
            imports.append(db["driver"])
            modules.append("handlers")

        files: FileSet = {
            "pyproject.toml": self.manifest_gen.generate(
                config.project_name, "HTTP service", imports, modules
            ),
            "main.py": self.renderer.render("http/main.py.j2", context),
        }
        if db is not None:
            files["handlers.py"] = self.renderer.render("http/handlers.py.j2", context)
        if config.github_actions:
            files.update(self.ci_gen.generate(config.project_name, modules))
        return files


def _database_context(database: DatabaseConfig) -> Optional[dict[str, Any]]:
    """Template variables for the pool wiring, or ``None`` when disabled."""
    if not database.enabled:
        return None
    try:
        driver = DATABASE_DRIVERS[database.kind]
    except KeyError:
        raise SynthesisError(f"No driver for database kind {database.kind!r}") from None
    return {
        "kind": database.kind.value,
        "driver": driver,
        "url_env": database.url_env,
        "max_connections": database.max_connections,
    }
