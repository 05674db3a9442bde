"""Exception hierarchy shared by the config loader, scaffolder and CLI.

Every error names what caused it -- a config field or an output path -- so a
user can fix the input and retry without reading engine internals.
"""

from __future__ import annotations

from pathlib import Path


class NetgenError(Exception):
    """Base class for all errors raised by netgen."""


class ConfigFileError(NetgenError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ValidationError(NetgenError):
    """Raised when a configuration violates a validation rule.

    Attributes:
        field: Dotted path of the offending field, e.g. ``read_mode.len_bytes``
            or ``routes[2].handler``.
        constraint: Human-readable description of the violated rule.
    """

    def __init__(self, field: str, constraint: str) -> None:
        self.field = field
        self.constraint = constraint
        super().__init__(f"{field}: {constraint}")


class SynthesisError(NetgenError):
    """Raised when code synthesis hits a state validation should have ruled out.

    Seeing one of these means the validator and the synthesizer disagree;
    it is an internal bug, not a user error.
    """


class EmissionError(NetgenError):
    """Raised when writing a generated file fails."""

    def __init__(self, path: str | Path, cause: str) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write {self.path}: {cause}")
