"""dpkg wrapper."""

from __future__ import annotations

from pathlib import Path

from whisperbuild.shell.runner import ShellRunner


def install(runner: ShellRunner, package_path: str | Path) -> None:
    runner.command(runner.sudo(["dpkg", "-i", str(package_path)]))
