"""Shared pytest fixtures for the netgen test suite.

Provides reusable fixtures for:
- Raw configs for each archetype (the t1 / t2 / health examples)
- A shared template renderer
- Loading generated sources as importable modules
- Fake stream writers for driving generated connection handlers
"""

from __future__ import annotations

import ast
import re
import sys
import tomllib
import types
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from netgen.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Raw configs
# ---------------------------------------------------------------------------

@pytest.fixture
def echo_raw() -> dict[str, Any]:
    """The ``t1`` TCP echo config."""
    return {
        "project_name": "t1",
        "port": 4000,
        "read_mode": {"type": "lines", "max_line_len": 8192},
    }


@pytest.fixture
def worker_raw() -> dict[str, Any]:
    """The ``t2`` TCP worker-pool config."""
    return {
        "project_name": "t2",
        "port": 5000,
        "workers": 4,
        "event_buffer": 1024,
        "read_mode": {"type": "fixed_size", "frame_size": 1024},
    }


@pytest.fixture
def http_raw() -> dict[str, Any]:
    """An HTTP config with a health check and two more routes, no database."""
    return {
        "project_name": "api",
        "port": 8080,
        "routes": [
            {"path": "/health", "method": "GET", "handler": "health", "response": "OK"},
            {"path": "/items", "method": "POST", "handler": "create_item", "response": "created"},
            {"path": "/items", "method": "GET", "handler": "list_items", "response": "[]"},
        ],
    }


@pytest.fixture
def http_db_raw(http_raw: dict[str, Any]) -> dict[str, Any]:
    """The HTTP config with a postgres pool enabled."""
    return {
        **http_raw,
        "database": {
            "enabled": True,
            "kind": "postgres",
            "url_env": "APP_DATABASE_URL",
            "max_connections": 5,
        },
    }


# ---------------------------------------------------------------------------
# Rendering & generated code
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def renderer() -> TemplateRenderer:
    """Renderer over the bundled templates."""
    return TemplateRenderer()


@pytest.fixture
def load_module(monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], types.ModuleType]:
    """Return a loader that executes generated source as a named module.

    The module is registered in ``sys.modules`` for the duration of the test
    so generated code that imports its sibling modules resolves them.
    """

    def _load(source: str, name: str = "main") -> types.ModuleType:
        module = types.ModuleType(name)
        module.__file__ = f"<generated {name}.py>"
        monkeypatch.setitem(sys.modules, name, module)
        exec(compile(source, module.__file__, "exec"), module.__dict__)
        return module

    return _load


@pytest.fixture
def fake_writer() -> MagicMock:
    """A stand-in for ``asyncio.StreamWriter`` that records writes."""
    writer = MagicMock()
    writer.get_extra_info.return_value = ("127.0.0.1", 50000)
    writer.is_closing.return_value = False
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return writer


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[dict[str, Any], str], Path]:
    """Return a helper that dumps a mapping to a YAML file under ``tmp_path``."""
    import yaml

    def _write(data: dict[str, Any], name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Manifest / import agreement
# ---------------------------------------------------------------------------

_LOCAL_MODULES = {"main", "handlers"}


def _third_party_imports(files: dict[str, str]) -> set[str]:
    names: set[str] = set()
    for path, source in files.items():
        if not path.endswith(".py"):
            continue
        for node in ast.walk(ast.parse(source)):
            if isinstance(node, ast.Import):
                names.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                names.add(node.module.split(".")[0])
    return names - set(sys.stdlib_module_names) - _LOCAL_MODULES - {"__future__"}


def _declared_dependencies(manifest: str) -> set[str]:
    project = tomllib.loads(manifest)["project"]
    return {re.split(r"[<>=!~ \[]", dep, maxsplit=1)[0] for dep in project["dependencies"]}


@pytest.fixture
def manifest_deps() -> Callable[[dict[str, str]], tuple[set[str], set[str]]]:
    """Return ``(declared, imported)`` third-party names for a file set."""

    def _check(files: dict[str, str]) -> tuple[set[str], set[str]]:
        return _declared_dependencies(files["pyproject.toml"]), _third_party_imports(files)

    return _check
