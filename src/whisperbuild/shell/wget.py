"""wget download builder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from whisperbuild.errors import ValidationError
from whisperbuild.shell.runner import ShellRunner


@dataclass(slots=True)
class Download:
    runner: ShellRunner
    out_file: Path | None = None

    def file(self, path: str | Path) -> Download:
        self.out_file = Path(path)
        return self

    def download(self, url: str) -> Download:
        if self.out_file is None:
            raise ValidationError(
                "wget download() requires file(path) first.",
                context={"url": url},
            )
        self.runner.command(["wget", "-q", url, "-O", str(self.out_file)])
        return self


def wget(runner: ShellRunner) -> Download:
    return Download(runner=runner)
