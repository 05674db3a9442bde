"""Configuration validation.

``validate`` is the single gate between user input and code generation. It
runs a fixed sequence of checks against the plain-data form of a config and
stops at the first violated rule, so the same bad config always produces the
same diagnostic. Only after every rule passes is the frozen config model
built and wrapped in a :class:`ValidatedConfig`.
"""

from __future__ import annotations

import builtins
import keyword
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from netgen.config import (
    CONFIG_TYPES,
    READ_MODE_TYPES,
    AnyConfig,
    Archetype,
    DatabaseConfig,
    DatabaseKind,
    HttpMethod,
    ProjectConfig,
    WorkerPoolConfig,
    archetype_of,
)
from netgen.errors import ValidationError

_PROJECT_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_ENV_VAR_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Names defined or imported at module level by the generated HTTP sources.
GENERATED_MODULE_NAMES: frozenset[str] = frozenset({
    "Annotated",
    "AsyncIterator",
    "DATABASE_URL_ENV",
    "Depends",
    "FastAPI",
    "HOST",
    "MAX_CONNECTIONS",
    "PORT",
    "PlainTextResponse",
    "Pool",
    "Request",
    "aiomysql",
    "app",
    "asynccontextmanager",
    "asyncpg",
    "create_pool",
    "get_pool",
    "handlers",
    "lifespan",
    "log",
    "os",
    "run",
    "structlog",
    "time",
    "trace_requests",
    "unquote",
    "urlsplit",
    "uvicorn",
})

# A handler with one of these names would shadow a name the generated code uses.
RESERVED_HANDLER_NAMES: frozenset[str] = GENERATED_MODULE_NAMES | frozenset(dir(builtins))

_READ_MODE_FIELDS: dict[str, frozenset[str]] = {
    name: frozenset(model.model_fields) for name, model in READ_MODE_TYPES.items()
}


@dataclass(frozen=True)
class ValidatedConfig:
    """A config that passed :func:`validate`; the only input generators accept."""

    archetype: Archetype
    config: AnyConfig

    @property
    def project_name(self) -> str:
        return self.config.project_name


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate(
    config: Mapping[str, Any] | ProjectConfig,
    archetype: Archetype | str | None = None,
) -> ValidatedConfig:
    """Validate a configuration for one archetype.

    Args:
        config: Either a raw mapping (as loaded from YAML or assembled from
            CLI flags) or an already-constructed config model.
        archetype: Required for raw mappings; inferred from the model class
            otherwise. A mismatch with the model class is an error.

    Returns:
        The validated, immutable configuration.

    Raises:
        ValidationError: Naming the first offending field and the violated
            constraint.
    """
    if isinstance(config, ProjectConfig):
        model_archetype = archetype_of(config)
        if archetype is not None and Archetype(archetype) is not model_archetype:
            raise ValidationError(
                "archetype",
                f"config model is {model_archetype.value}, not {Archetype(archetype).value}",
            )
        archetype = model_archetype
        data: Mapping[str, Any] = config.model_dump()
    elif isinstance(config, Mapping):
        if archetype is None:
            raise ValidationError("archetype", "required when validating a raw mapping")
        try:
            archetype = Archetype(archetype)
        except ValueError:
            raise ValidationError(
                "archetype",
                f"must be one of {_choices(a.value for a in Archetype)}, got {archetype!r}",
            ) from None
        data = config
    else:
        raise ValidationError(
            "<config>", f"must be a mapping or config model, got {type(config).__name__}"
        )

    _check_project_name(data.get("project_name"))
    _check_port(data.get("port"))

    if archetype in (Archetype.TCP_ECHO, Archetype.TCP_WORKER):
        _check_read_mode(data.get("read_mode"))
    if archetype is Archetype.TCP_WORKER:
        _check_positive(
            "workers", data.get("workers", _default(WorkerPoolConfig, "workers"))
        )
        _check_positive(
            "event_buffer", data.get("event_buffer", _default(WorkerPoolConfig, "event_buffer"))
        )
    if archetype is Archetype.HTTP:
        _check_routes(data.get("routes"))
        _check_database(data.get("database"))

    return ValidatedConfig(archetype=archetype, config=_build_model(archetype, data))


# ---------------------------------------------------------------------------
# Individual rules (in check order)
# ---------------------------------------------------------------------------

def _check_project_name(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError("project_name", "must be a non-empty string")
    if not _PROJECT_NAME_RE.match(value):
        raise ValidationError(
            "project_name",
            f"{value!r} may only contain letters, digits, '_' and '-', "
            "and must not start with a digit or '-'",
        )


def _check_port(value: Any) -> None:
    if not _is_int(value) or not 1 <= value <= 65535:
        raise ValidationError("port", f"must be an integer in [1, 65535], got {value!r}")


def _check_read_mode(value: Any) -> None:
    if value is None:
        raise ValidationError("read_mode", "required for TCP archetypes")
    if not isinstance(value, Mapping):
        raise ValidationError("read_mode", f"must be a mapping, got {type(value).__name__}")

    mode = value.get("type")
    if mode not in READ_MODE_TYPES:
        raise ValidationError(
            "read_mode.type",
            f"must be one of {_choices(READ_MODE_TYPES)}, got {mode!r}",
        )

    allowed = _READ_MODE_FIELDS[mode]
    for key in value:
        if key not in allowed:
            raise ValidationError(f"read_mode.{key}", f"not valid for read mode {mode!r}")

    if mode == "lines":
        _check_optional_len("read_mode.max_line_len", value.get("max_line_len"))
    elif mode == "fixed_size":
        _check_positive("read_mode.frame_size", value.get("frame_size"))
    elif mode == "delimited":
        delim = value.get("delim")
        if not _is_int(delim) or not 0 <= delim <= 255:
            raise ValidationError(
                "read_mode.delim", f"must be a byte value in [0, 255], got {delim!r}"
            )
        _check_optional_len("read_mode.max_len", value.get("max_len"))
    elif mode == "length_prefixed":
        len_bytes = value.get("len_bytes")
        if not _is_int(len_bytes) or len_bytes not in (1, 2, 4):
            raise ValidationError(
                "read_mode.len_bytes", f"must be 1, 2 or 4, got {len_bytes!r}"
            )
        big_endian = value.get("big_endian", True)
        if not isinstance(big_endian, bool):
            raise ValidationError(
                "read_mode.big_endian", f"must be a boolean, got {big_endian!r}"
            )
        _check_optional_len(
            "read_mode.max_len", value.get("max_len"), upper=2 ** (8 * len_bytes) - 1
        )


def _check_routes(value: Any) -> None:
    if not isinstance(value, list) or not value:
        raise ValidationError("routes", "at least one route is required")

    handlers_seen: set[str] = set()
    endpoints_seen: set[tuple[str, str]] = set()
    for index, route in enumerate(value):
        where = f"routes[{index}]"
        if not isinstance(route, Mapping):
            raise ValidationError(where, f"must be a mapping, got {type(route).__name__}")

        path = route.get("path")
        if not isinstance(path, str) or not path.startswith("/"):
            raise ValidationError(f"{where}.path", f"must start with '/', got {path!r}")

        method = _normalize_method(route.get("method", "GET"))
        if method is None:
            raise ValidationError(
                f"{where}.method",
                f"must be one of {_choices(m.value for m in HttpMethod)}, "
                f"got {route.get('method')!r}",
            )

        handler = route.get("handler")
        if not isinstance(handler, str) or not handler.isidentifier() or keyword.iskeyword(handler):
            raise ValidationError(
                f"{where}.handler", f"must be a valid Python identifier, got {handler!r}"
            )
        if handler in RESERVED_HANDLER_NAMES:
            raise ValidationError(
                f"{where}.handler", f"{handler!r} is reserved by the generated module"
            )
        if handler in handlers_seen:
            raise ValidationError(f"{where}.handler", f"duplicate handler name {handler!r}")
        handlers_seen.add(handler)

        endpoint = (method, path)
        if endpoint in endpoints_seen:
            raise ValidationError(where, f"duplicate route {method} {path}")
        endpoints_seen.add(endpoint)

        response = route.get("response", "")
        if not isinstance(response, str):
            raise ValidationError(
                f"{where}.response", f"must be a string, got {type(response).__name__}"
            )


def _check_database(value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, Mapping):
        raise ValidationError("database", f"must be a mapping, got {type(value).__name__}")
    if not value.get("enabled", False):
        return

    kind = value.get("kind", _default(DatabaseConfig, "kind"))
    if isinstance(kind, str):
        kind = kind.lower()
    if kind not in {k.value for k in DatabaseKind}:
        raise ValidationError(
            "database.kind",
            f"must be one of {_choices(k.value for k in DatabaseKind)}, got {kind!r}",
        )

    url_env = value.get("url_env", _default(DatabaseConfig, "url_env"))
    if not isinstance(url_env, str) or not url_env:
        raise ValidationError("database.url_env", "must be a non-empty string")
    if not _ENV_VAR_RE.match(url_env):
        raise ValidationError(
            "database.url_env", f"{url_env!r} is not a valid environment variable name"
        )

    _check_positive(
        "database.max_connections",
        value.get("max_connections", _default(DatabaseConfig, "max_connections")),
    )


# ---------------------------------------------------------------------------
# Model construction
# ---------------------------------------------------------------------------

def _build_model(archetype: Archetype, data: Mapping[str, Any]) -> AnyConfig:
    """Build the frozen model; remaining type errors surface as ValidationError."""
    try:
        return CONFIG_TYPES[archetype].model_validate(dict(data))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        raise ValidationError(_format_loc(first["loc"]), first["msg"]) from None


def _format_loc(loc: tuple[Any, ...]) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        elif item in READ_MODE_TYPES:
            # Discriminated-union errors include the tag as a path segment.
            continue
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts) or "<config>"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _default(model: type[BaseModel], field: str) -> Any:
    return model.model_fields[field].default


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_positive(field: str, value: Any) -> None:
    if not _is_int(value) or value <= 0:
        raise ValidationError(field, f"must be a positive integer, got {value!r}")


def _check_optional_len(field: str, value: Any, upper: Optional[int] = None) -> None:
    if value is None:
        return
    _check_positive(field, value)
    if upper is not None and value > upper:
        raise ValidationError(
            field, f"must not exceed {upper} (largest value the length header can hold)"
        )


def _normalize_method(value: Any) -> Optional[str]:
    if isinstance(value, HttpMethod):
        return value.value
    if isinstance(value, str) and value.upper() in HttpMethod.__members__:
        return value.upper()
    return None


def _choices(values: Any) -> str:
    return ", ".join(repr(v) for v in values)
