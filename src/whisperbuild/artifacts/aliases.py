"""Shared-library alias materialization for installed binding trees."""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from whisperbuild.observability import StructuredLogger


def _versioned_pattern(extension: str) -> re.Pattern[str]:
    return re.compile(rf"^(lib.+)\.(\d+)\.(\d+)\.(\d+)\.{re.escape(extension)}$")


def materialize_dylib_aliases(
    bins_dir: Path,
    *,
    extension: str = "dylib",
    logger: StructuredLogger | None = None,
) -> list[Path]:
    """Copy ``libX.M.m.p.ext`` to ``libX.M.ext`` and ``libX.ext``.

    The loader searches for the major-versioned and unversioned names, which
    the install step does not produce. Stale aliases are removed before each
    copy. Returns the aliases written; a missing directory yields none.
    """
    if not bins_dir.is_dir():
        return []

    pattern = _versioned_pattern(extension)
    written: list[Path] = []
    for source in sorted(bins_dir.iterdir()):
        match = pattern.match(source.name)
        if match is None or not source.is_file():
            continue
        base_name, major = match.group(1), match.group(2)
        for alias_name in (f"{base_name}.{major}.{extension}", f"{base_name}.{extension}"):
            alias = bins_dir / alias_name
            alias.unlink(missing_ok=True)
            shutil.copyfile(source, alias)
            written.append(alias)
            if logger is not None:
                logger.info("alias", f"{source.name} -> {alias_name}", stage="binding")
    return written
