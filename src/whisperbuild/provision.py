"""Host provisioning and repository housekeeping for CI runners."""

from __future__ import annotations

import shutil
from pathlib import Path

from whisperbuild.config import Layout
from whisperbuild.shell.apt import apt
from whisperbuild.shell.runner import ShellRunner

CI_APT_PACKAGES = (
    "build-essential",
    "cmake",
    "ninja-build",
    "pkg-config",
    "git",
    "curl",
    "ca-certificates",
    "gnupg",
    "python3",
    "unzip",
)


def install_ci_dependencies(runner: ShellRunner) -> None:
    """Install the Linux build prerequisites, then the JavaScript dependencies."""
    apt(runner).update().batch(list(CI_APT_PACKAGES)).install()
    runner.command(["bun", "install"])


def repo_clean_paths(layout: Layout) -> list[Path]:
    paths = [
        layout.build_root,
        layout.store,
        layout.source_root,
        layout.repo / "dist",
        layout.artifacts,
    ]
    if layout.platform_packages.is_dir():
        for package_dir in sorted(layout.platform_packages.iterdir()):
            paths.extend([package_dir / "bins", package_dir / "dist"])
    return paths


def repo_clean(layout: Layout) -> list[Path]:
    """Remove every generated tree; returns the paths that existed."""
    removed: list[Path] = []
    for path in repo_clean_paths(layout):
        if path.exists():
            shutil.rmtree(path)
            removed.append(path)
    return removed
