"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from whisperbuild.config import BuildOptions, Layout, Settings
from whisperbuild.observability import StructuredLogger
from whisperbuild.platforms import ProbeResult, ProbeStatus, Target
from whisperbuild.shell.runner import CommandResult, ShellRunner
from whisperbuild.stages import StageContext
from whisperbuild.toolchain import Toolchain

CommandHook = Callable[[tuple[str, ...], Path], None]

LINUX_CPU = Target(os="linux", arch="x64", backend="cpu", libc="gnu")


class FakeRunner(ShellRunner):
    """Records commands instead of spawning them; ``hook`` simulates side effects."""

    def __init__(self, cwd: Path, hook: CommandHook | None = None) -> None:
        super().__init__(
            cwd=cwd,
            logger=StructuredLogger(),
            is_root=lambda: True,
            which=lambda _: None,
            sleep=self._record_sleep,
        )
        self.delays: list[float] = []
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self.hook = hook

    def command(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(str(arg) for arg in args)
        workdir = cwd if cwd is not None else self.cwd
        self.calls.append((argv, workdir))
        if self.hook is not None:
            self.hook(argv, workdir)
        return CommandResult(argv=argv, returncode=0)

    def _record_sleep(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [argv for argv, _ in self.calls]


class FakeProbe:
    def __init__(self, responses: dict[str, ProbeResult] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, ...]] = []

    def probe(self, argv: Sequence[str]) -> ProbeResult:
        self.calls.append(tuple(argv))
        return self.responses.get(argv[0], ProbeResult(status=ProbeStatus.ABSENT))


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    return tmp_path / "repo"


@pytest.fixture
def fake_runner(repo: Path) -> FakeRunner:
    return FakeRunner(cwd=repo)


@pytest.fixture
def make_context(repo: Path) -> Callable[..., StageContext]:
    def _make(
        runner: FakeRunner,
        *,
        target: Target = LINUX_CPU,
        dry_run: bool = False,
        ci: bool = False,
    ) -> StageContext:
        return StageContext(
            target=target,
            layout=Layout(repo=repo),
            runner=runner,
            toolchain=Toolchain(),
            settings=Settings(),
            options=BuildOptions(dry_run=dry_run, ci=ci),
            logger=runner.logger,
        )

    return _make
