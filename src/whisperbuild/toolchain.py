"""Resolved external tool locations, constructed once at process start."""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Toolchain:
    cmake: str = "cmake"
    git: str = "git"
    npm: str = "npm"
    node: str = "node"
    tsc: tuple[str, ...] = ("tsc",)

    @classmethod
    def discover(
        cls,
        repo: Path,
        *,
        which: Callable[[str], str | None] = shutil.which,
    ) -> Toolchain:
        """Resolve tools from PATH, preferring the repository's own TypeScript."""
        node = which("node") or "node"
        local_tsc = repo / "node_modules" / "typescript" / "bin" / "tsc"
        if local_tsc.exists():
            tsc: tuple[str, ...] = (node, str(local_tsc))
        else:
            tsc = (which("tsc") or "tsc",)
        return cls(
            cmake=which("cmake") or "cmake",
            git=which("git") or "git",
            npm=which("npm") or "npm",
            node=node,
            tsc=tsc,
        )

    def tsc_command(self, project: Path, out_dir: Path) -> list[str]:
        return [*self.tsc, "--project", str(project), "--outDir", str(out_dir)]
