"""apt-get wrapper; index refreshes and installs are retried."""

from __future__ import annotations

from dataclasses import dataclass, field

from whisperbuild.shell.runner import ShellRunner


@dataclass(slots=True)
class AptBatch:
    runner: ShellRunner
    packages: list[str] = field(default_factory=list)

    def update(self) -> AptBatch:
        self._run(["apt-get", "update"])
        return self

    def batch(self, packages: str | list[str] | tuple[str, ...]) -> AptBatch:
        if isinstance(packages, str):
            self.packages.append(packages)
        else:
            self.packages.extend(packages)
        return self

    def install(self) -> None:
        if self.packages:
            self._run(["apt-get", "install", "-y", *self.packages])

    def _run(self, args: list[str]) -> None:
        self.runner.retry(
            lambda: self.runner.command(self.runner.sudo(args)),
            description=f"apt command `{' '.join(args)}`",
        )


def apt(runner: ShellRunner) -> AptBatch:
    return AptBatch(runner=runner)
