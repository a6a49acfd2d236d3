# ccruntime/utils.py
from __future__ import annotations

import os
from pathlib import Path

from ccruntime.errors import PathResolutionError


def resolve_path(path: str | os.PathLike[str], subsystem: str) -> str:
    """
    Canonical form of `path` with every symlink followed.

    The target must exist: a dangling link, a missing file or a loop is a
    PathResolutionError tagged with `subsystem`.
    """
    raw = os.fspath(path)
    if not raw:
        raise PathResolutionError(subsystem, raw, "empty path")
    try:
        return str(Path(raw).resolve(strict=True))
    except (OSError, RuntimeError) as err:
        reason = getattr(err, "strerror", None) or str(err)
        raise PathResolutionError(subsystem, raw, reason) from err
