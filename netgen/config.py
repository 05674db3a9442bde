"""netgen configuration model.

Typed representation of the three service archetypes that netgen can
scaffold. All settings use Pydantic v2 models: instances are frozen, reject
unknown keys and carry their defaults as plain field defaults, so one
generation run never shares mutable state with another.

The models are purely structural. Range and consistency rules (port bounds,
read-mode limits, unique handlers, ...) live in
:mod:`netgen.scaffolder.validator`, which checks them in a fixed order before
a model is built.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from netgen.errors import ConfigFileError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Archetype(str, Enum):
    """The closed set of service shapes netgen can generate."""
    TCP_ECHO = "tcp-echo"
    TCP_WORKER = "tcp-worker"
    HTTP = "http"


class HttpMethod(str, Enum):
    """Supported HTTP methods for generated routes."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class DatabaseKind(str, Enum):
    """Database backends the HTTP archetype can wire a pool for."""
    POSTGRES = "postgres"
    MYSQL = "mysql"


# ---------------------------------------------------------------------------
# Read modes
# ---------------------------------------------------------------------------

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LinesMode(_Frozen):
    """Newline-terminated frames."""
    type: Literal["lines"] = "lines"
    max_line_len: Optional[int] = Field(
        default=None, description="Longest accepted line in bytes, newline excluded"
    )


class FixedSizeMode(_Frozen):
    """Frames of a constant byte length."""
    type: Literal["fixed_size"] = "fixed_size"
    frame_size: int = Field(..., description="Bytes per frame")


class DelimitedMode(_Frozen):
    """Frames terminated by a single delimiter byte."""
    type: Literal["delimited"] = "delimited"
    delim: int = Field(..., description="Delimiter byte value (0-255), e.g. 10 == '\\n'")
    max_len: Optional[int] = Field(default=None, description="Longest accepted frame in bytes")


class LengthPrefixedMode(_Frozen):
    """Frames preceded by an unsigned length header."""
    type: Literal["length_prefixed"] = "length_prefixed"
    len_bytes: int = Field(..., description="Width of the length header: 1, 2 or 4 bytes")
    big_endian: bool = Field(default=True, description="Network byte order when true")
    max_len: Optional[int] = Field(default=None, description="Largest accepted payload in bytes")


ReadMode = Annotated[
    Union[LinesMode, FixedSizeMode, DelimitedMode, LengthPrefixedMode],
    Field(discriminator="type"),
]

READ_MODE_TYPES: dict[str, type[BaseModel]] = {
    "lines": LinesMode,
    "fixed_size": FixedSizeMode,
    "delimited": DelimitedMode,
    "length_prefixed": LengthPrefixedMode,
}


# ---------------------------------------------------------------------------
# Archetype configs
# ---------------------------------------------------------------------------

class ProjectConfig(_Frozen):
    """Fields shared by every archetype."""

    project_name: str = Field(..., description="Package name of the generated project")
    port: int = Field(..., description="TCP port the generated service listens on")
    tracing: bool = Field(default=False, description="Emit structlog instrumentation")
    out_dir: Optional[Path] = Field(default=None, description="Target directory")
    github_actions: bool = Field(default=False, description="Emit a CI workflow")


class TcpEchoConfig(ProjectConfig):
    """TCP server that writes every frame straight back to its sender."""

    read_mode: ReadMode


class WorkerPoolConfig(ProjectConfig):
    """TCP server that hands decoded frames to a pool of worker tasks."""

    read_mode: ReadMode
    workers: int = Field(default=4, description="Number of long-lived worker tasks")
    event_buffer: int = Field(
        default=1024, description="Capacity of the bounded frame queue"
    )


class Route(_Frozen):
    """A single HTTP route with a static response body."""

    path: str = Field(..., description="URL path, e.g. '/health'")
    method: HttpMethod = Field(default=HttpMethod.GET, description="HTTP method")
    handler: str = Field(..., description="Name of the generated handler function")
    response: str = Field(default="", description="Literal response body")

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class DatabaseConfig(_Frozen):
    """Optional connection-pool wiring for the HTTP archetype."""

    enabled: bool = Field(default=False)
    kind: DatabaseKind = Field(default=DatabaseKind.POSTGRES)
    url_env: str = Field(
        default="DATABASE_URL",
        description="Environment variable holding the connection string",
    )
    max_connections: int = Field(default=10, description="Pool size")

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class HttpConfig(ProjectConfig):
    """HTTP service with static routes and an optional database pool."""

    routes: list[Route] = Field(default_factory=list)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)


AnyConfig = Union[TcpEchoConfig, WorkerPoolConfig, HttpConfig]

CONFIG_TYPES: dict[Archetype, type[ProjectConfig]] = {
    Archetype.TCP_ECHO: TcpEchoConfig,
    Archetype.TCP_WORKER: WorkerPoolConfig,
    Archetype.HTTP: HttpConfig,
}


def archetype_of(config: ProjectConfig) -> Archetype:
    """Return the archetype a config model belongs to."""
    for archetype, model in CONFIG_TYPES.items():
        if type(config) is model:
            return archetype
    raise ValueError(f"Not an archetype config: {type(config).__name__}")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_raw_config(path: str | Path) -> dict[str, Any]:
    """Read a YAML configuration file into a plain mapping.

    The mapping is not validated here; pass it to
    :func:`netgen.scaffolder.validator.validate` together with the archetype.

    Raises:
        ConfigFileError: If the file is missing, unreadable, not valid YAML,
            or its top level is not a mapping.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(file_path, exc.strerror or str(exc)) from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigFileError(file_path, f"invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigFileError(
            file_path, f"top level must be a mapping, got {type(data).__name__}"
        )
    return data
