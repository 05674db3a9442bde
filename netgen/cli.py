"""Command-line entry point for netgen.

Usage::

    netgen tcp-echo --name echo --port 4000 --tracing
    netgen tcp-echo --config echo.yaml --out-dir ./echo
    netgen tcp-worker --config worker.yaml
    netgen http --config api.yaml --dry-run
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

from netgen import __version__
from netgen.config import Archetype, load_raw_config
from netgen.errors import NetgenError
from netgen.scaffolder import ProjectGenerator, emit, resolve_out_dir, validate
from netgen.utils import (
    print_error,
    print_file_table,
    print_success,
    print_summary_table,
    print_warning,
)

DEFAULT_ECHO_NAME = "tcp-echo-server"
DEFAULT_ECHO_PORT = 4000

# tcp-echo flags that may override or replace config file values.
_ECHO_OVERRIDES = ("project_name", "port", "tracing", "github_actions")


def build_parser() -> argparse.ArgumentParser:
    """Build the ``netgen`` argument parser with one subcommand per archetype."""
    parser = argparse.ArgumentParser(
        prog="netgen",
        description="netgen -- scaffold TCP and HTTP service projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  netgen tcp-echo --name echo --port 4000\n"
            "  netgen tcp-worker --config worker.yaml --out-dir ./worker\n"
            "  netgen http --config api.yaml --dry-run\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"netgen {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    echo = subparsers.add_parser(
        Archetype.TCP_ECHO.value,
        help="TCP echo server (config file optional)",
    )
    echo.add_argument("--config", "-c", type=Path, default=None, help="YAML config file")
    echo.add_argument(
        "--name",
        dest="project_name",
        default=None,
        help=f"Project name (default: {DEFAULT_ECHO_NAME})",
    )
    echo.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Listen port (default: {DEFAULT_ECHO_PORT})",
    )
    echo.add_argument(
        "--tracing",
        action="store_true",
        default=None,
        help="Emit structured logging in the generated server",
    )
    echo.add_argument(
        "--github-actions",
        action="store_true",
        default=None,
        help="Also generate a GitHub Actions CI workflow",
    )
    echo.add_argument(
        "--max-line-len",
        type=int,
        default=None,
        help="Maximum line length in bytes for flag-built configs (default: unbounded)",
    )
    _add_common_arguments(echo)

    worker = subparsers.add_parser(
        Archetype.TCP_WORKER.value,
        help="TCP server with a bounded queue and a worker pool",
    )
    worker.add_argument("--config", "-c", type=Path, required=True, help="YAML config file")
    _add_common_arguments(worker)

    http = subparsers.add_parser(
        Archetype.HTTP.value,
        help="HTTP service with static routes and an optional database pool",
    )
    http.add_argument("--config", "-c", type=Path, required=True, help="YAML config file")
    _add_common_arguments(http)

    return parser


def _add_common_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--out-dir",
        "-o",
        type=Path,
        default=None,
        help="Output directory (default: config out_dir, then the project name)",
    )
    subparser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and list the files without writing anything",
    )


def raw_config_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Assemble the raw config mapping for a parsed command line.

    ``tcp-echo`` without ``--config`` builds a lines-mode config from its
    flags. With ``--config`` the file is loaded and any tcp-echo flags given
    explicitly override the matching top-level keys.

    Raises:
        ConfigFileError: If the config file cannot be read or parsed.
    """
    config_path: Optional[Path] = args.config
    if config_path is not None:
        raw = load_raw_config(config_path)
    else:
        raw = {
            "project_name": DEFAULT_ECHO_NAME,
            "port": DEFAULT_ECHO_PORT,
            "read_mode": {"type": "lines"},
        }
        if args.max_line_len is not None:
            raw["read_mode"]["max_line_len"] = args.max_line_len

    if args.command == Archetype.TCP_ECHO.value:
        if config_path is not None and args.max_line_len is not None:
            print_warning("--max-line-len is ignored when --config is given")
        for key in _ECHO_OVERRIDES:
            value = getattr(args, key)
            if value is not None:
                raw[key] = value
    return raw


def run(args: argparse.Namespace, generator: Optional[ProjectGenerator] = None) -> Path:
    """Execute one parsed subcommand.

    Returns:
        The resolved output directory (not created on a dry run).

    Raises:
        NetgenError: On any configuration, validation, synthesis or
            emission failure. Nothing is written unless validation and
            generation both succeed.
    """
    generator = generator or ProjectGenerator()
    archetype = Archetype(args.command)

    validated = validate(raw_config_from_args(args), archetype)
    files = generator.generate(validated)
    out_dir = resolve_out_dir(args.out_dir, validated.config.out_dir, validated.project_name)

    print_summary_table(
        {
            "Archetype": archetype.value,
            "Project": validated.project_name,
            "Output": str(out_dir),
            "Files": str(len(files)),
        },
        title="netgen",
    )

    if args.dry_run:
        print_file_table(
            {rel: len(content.encode("utf-8")) for rel, content in sorted(files.items())},
            title="Files (dry run)",
        )
        print_success(f"Dry run: {len(files)} files would be written to {out_dir}")
        return out_dir

    if out_dir.is_dir() and any(out_dir.iterdir()):
        print_warning(f"{out_dir} is not empty; generated files will be overwritten")

    written = emit(files, out_dir)
    print_file_table(
        {path.relative_to(out_dir).as_posix(): path.stat().st_size for path in written},
        title="Files written",
    )
    print_success(f"Generated {validated.project_name} ({len(written)} files) in {out_dir}")
    return out_dir


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for ``netgen`` and ``python -m netgen``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        run(args)
    except NetgenError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
