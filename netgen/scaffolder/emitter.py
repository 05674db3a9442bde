"""Writing generated file sets to disk.

This is the only place netgen touches the output directory. Files named in
the file set are created or overwritten; nothing else in the directory is
ever read, moved or deleted. A failure stops emission at the failing file
and is reported with its path -- files written before it stay in place.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from netgen.errors import EmissionError

# Relative POSIX path -> file contents.
FileSet = dict[str, str]


def emit(files: FileSet, out_dir: str | Path) -> list[Path]:
    """Write every file in *files* below *out_dir*.

    ``out_dir`` and any intermediate directories are created as needed.
    Files are written in sorted path order as UTF-8 with the exact contents
    given, so emitting the same file set twice yields byte-identical trees.

    Args:
        files: Mapping of relative POSIX paths to contents.
        out_dir: Target directory.

    Returns:
        The written paths, in write order.

    Raises:
        EmissionError: For an unsafe relative path or any OS-level failure,
            naming the path involved.
    """
    root = Path(out_dir)
    targets = [(_resolve_target(root, rel), content) for rel, content in sorted(files.items())]

    _mkdir(root)
    written: list[Path] = []
    for target, content in targets:
        _mkdir(target.parent)
        try:
            target.write_bytes(content.encode("utf-8"))
        except OSError as exc:
            raise EmissionError(target, exc.strerror or str(exc)) from exc
        written.append(target)
    return written


def _resolve_target(root: Path, rel: str) -> Path:
    """Map a file-set key to its destination, rejecting paths that escape *root*."""
    path = PurePosixPath(rel)
    if not rel or path.is_absolute() or ".." in path.parts or rel.endswith("/"):
        raise EmissionError(root / rel, "file set paths must be relative and stay inside out_dir")
    return root.joinpath(*path.parts)


def _mkdir(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise EmissionError(directory, exc.strerror or str(exc)) from exc
