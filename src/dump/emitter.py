# src/dump/emitter.py
"""
Streaming JSON output.

The normalized tree can be large (every byte of a blob becomes a list
entry), so it is serialized with JSONEncoder.iterencode and written chunk by
chunk instead of being rendered into one string first.

File targets are written to a private `<name>.<random>.part` file next to the
target and renamed into place only after the last chunk, so a `<name>.json`
on disk is always a complete document, even when two writers race for it.
"""

from __future__ import annotations

import json
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, TextIO, Union

from runtime.context import RunContext, ensure_context
from runtime.errors import EmitError

PART_SUFFIX = ".part"


def scrub(value: Any) -> Any:
    """
    Prepare a normalized tree for JSON.

    - NUL characters are removed from every string (keys included)
    - NaN / Infinity become None, which keeps the output valid JSON
    """
    if isinstance(value, str):
        return value.replace("\x00", "")
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {scrub(k) if isinstance(k, str) else k: scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [scrub(v) for v in value]
    return value


def make_encoder(pretty_width: Optional[int] = 0) -> json.JSONEncoder:
    """Compact encoder for 0/None, otherwise indented by `pretty_width` spaces."""
    if pretty_width:
        return json.JSONEncoder(indent=pretty_width, ensure_ascii=False, allow_nan=False)
    return json.JSONEncoder(separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def emit(
    tree: Any,
    sink: TextIO,
    pretty_width: Optional[int] = 0,
    target: Union[str, Path] = "<sink>",
) -> None:
    """
    Serialize `tree` into `sink` incrementally.

    The sink is closed on success and on failure; failures raise EmitError.
    """
    encoder = make_encoder(pretty_width)
    try:
        for chunk in encoder.iterencode(scrub(tree)):
            sink.write(chunk)
        sink.flush()
    except Exception as exc:
        raise EmitError(target, exc) from exc
    finally:
        sink.close()


def emit_to_path(
    tree: Any,
    path: Union[str, Path],
    pretty_width: Optional[int] = 0,
    ctx: Optional[RunContext] = None,
) -> Path:
    """Write `tree` to `path` atomically and return the final path."""
    ctx = ensure_context(ctx)
    path = Path(path)
    ctx.reporter.export(str(path))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=PART_SUFFIX,
            delete=False,
        )
    except OSError as exc:
        ctx.reporter.error(str(path))
        raise EmitError(path, exc) from exc

    part = Path(sink.name)
    try:
        emit(tree, sink, pretty_width, target=path)
        try:
            os.replace(part, path)
        except OSError as exc:
            raise EmitError(path, exc) from exc
    except BaseException:
        part.unlink(missing_ok=True)
        ctx.reporter.error(str(path))
        raise

    ctx.reporter.success(str(path))
    return path
