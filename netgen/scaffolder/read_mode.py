"""Read-mode code synthesis.

Maps a :data:`~netgen.config.ReadMode` to the Python source that frames a TCP
byte stream. Both TCP archetypes splice the fragment returned by
:func:`synthesize` into their ``main.py`` verbatim, so an echo server and a
worker-pool server built from the same read mode parse the stream identically.

Every fragment defines the same four names, which the enclosing module
relies on (and it must have ``asyncio`` imported):

- ``FrameError`` -- raised on a protocol violation; the caller closes the
  connection.
- ``async def read_frame(reader) -> bytes | None`` -- the next frame, or
  ``None`` on a clean end of stream.
- ``def encode_frame(frame) -> bytes`` -- re-applies the framing so a frame
  can be written back to a peer.
- ``READER_LIMIT`` -- the ``limit`` for connection stream readers. For
  bounded lines and delimited modes it equals the bound, so an oversized
  frame fails as soon as it is buffered.
"""

from __future__ import annotations

from typing import Any, Optional

from netgen.config import (
    DelimitedMode,
    FixedSizeMode,
    LengthPrefixedMode,
    LinesMode,
)
from netgen.errors import SynthesisError

from .templates import TemplateRenderer

_LEN_BYTES = (1, 2, 4)


def synthesize(mode: Any, renderer: Optional[TemplateRenderer] = None) -> str:
    """Return the framing source fragment for *mode*.

    Raises:
        SynthesisError: If *mode* is not a known read mode or holds values
            the validator rejects (e.g. ``len_bytes=3``).
    """
    template, context = _template_for(mode)
    renderer = renderer or TemplateRenderer()
    return renderer.render(template, context).rstrip("\n") + "\n"


def describe(mode: Any) -> str:
    """One-line human-readable summary of *mode*, e.g. for CLI output."""
    if isinstance(mode, LinesMode):
        bound = f"max {mode.max_line_len} bytes" if mode.max_line_len else "unbounded"
        return f"lines ({bound})"
    if isinstance(mode, FixedSizeMode):
        return f"fixed_size ({mode.frame_size} bytes)"
    if isinstance(mode, DelimitedMode):
        bound = f", max {mode.max_len} bytes" if mode.max_len else ""
        return f"delimited (byte {mode.delim}{bound})"
    if isinstance(mode, LengthPrefixedMode):
        order = "big" if mode.big_endian else "little"
        bound = f", max {mode.max_len} bytes" if mode.max_len else ""
        return f"length_prefixed ({mode.len_bytes}-byte {order}-endian{bound})"
    raise SynthesisError(f"Unsupported read mode: {mode!r}")


# ---------------------------------------------------------------------------
# Per-mode template selection
# ---------------------------------------------------------------------------

def _template_for(mode: Any) -> tuple[str, dict[str, Any]]:
    if isinstance(mode, LinesMode):
        _require_bound("max_line_len", mode.max_line_len)
        return "read_mode/lines.py.j2", {"max_line_len": mode.max_line_len}

    if isinstance(mode, FixedSizeMode):
        if mode.frame_size <= 0:
            raise SynthesisError(f"frame_size must be positive, got {mode.frame_size}")
        return "read_mode/fixed_size.py.j2", {"frame_size": mode.frame_size}

    if isinstance(mode, DelimitedMode):
        if not 0 <= mode.delim <= 255:
            raise SynthesisError(f"delim must be a byte value, got {mode.delim}")
        _require_bound("max_len", mode.max_len)
        return "read_mode/delimited.py.j2", {"delim": mode.delim, "max_len": mode.max_len}

    if isinstance(mode, LengthPrefixedMode):
        if mode.len_bytes not in _LEN_BYTES:
            raise SynthesisError(f"len_bytes must be 1, 2 or 4, got {mode.len_bytes}")
        _require_bound("max_len", mode.max_len, upper=2 ** (8 * mode.len_bytes) - 1)
        return "read_mode/length_prefixed.py.j2", {
            "len_bytes": mode.len_bytes,
            "byte_order": "big" if mode.big_endian else "little",
            "max_len": mode.max_len,
        }

    raise SynthesisError(f"Unsupported read mode: {mode!r}")


def _require_bound(name: str, value: Optional[int], upper: Optional[int] = None) -> None:
    if value is None:
        return
    if value <= 0:
        raise SynthesisError(f"{name} must be positive, got {value}")
    if upper is not None and value > upper:
        raise SynthesisError(f"{name} {value} does not fit the length header (max {upper})")
