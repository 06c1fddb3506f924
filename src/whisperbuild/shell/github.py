"""GitHub Actions environment-file writers.

Each method is a no-op unless the runner exposes the matching file through
``GITHUB_ENV``, ``GITHUB_PATH`` or ``GITHUB_OUTPUT``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class GitHubActions:
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))

    def export(self, key: str, value: str) -> GitHubActions:
        self._append_line("GITHUB_ENV", f"{key}={value}")
        return self

    def append(self, key: str, value: str, separator: str = ":") -> GitHubActions:
        existing = self.env.get(key, "")
        combined = f"{value}{separator}{existing}" if existing else value
        return self.export(key, combined)

    def path(self, value: str) -> GitHubActions:
        self._append_line("GITHUB_PATH", value)
        return self

    def output(self, key: str, value: str) -> GitHubActions:
        self._append_line("GITHUB_OUTPUT", f"{key}={value}")
        return self

    def _append_line(self, variable: str, line: str) -> None:
        target = self.env.get(variable)
        if not target:
            return
        with Path(target).open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
