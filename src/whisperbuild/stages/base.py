"""Shared stage contract and execution context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from whisperbuild.config import BuildOptions, Layout, Settings
from whisperbuild.observability import StructuredLogger
from whisperbuild.platforms import Target
from whisperbuild.shell.runner import ShellRunner
from whisperbuild.toolchain import Toolchain


class StageState(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StageContext:
    """Everything a stage needs; the target is the only value shared across stages."""

    target: Target
    layout: Layout
    runner: ShellRunner
    toolchain: Toolchain
    settings: Settings
    options: BuildOptions
    logger: StructuredLogger

    @property
    def platform_id(self) -> str:
        return self.target.platform_id

    def log(self, stage: str, message: str, **extra: object) -> None:
        self.logger.info(
            "stage",
            message,
            stage=stage,
            platform=self.platform_id,
            extra=dict(extra) if extra else None,
        )


class Stage(Protocol):
    name: str

    def run(self, ctx: StageContext) -> None:
        """Produce this stage's output tree; clears it first."""

