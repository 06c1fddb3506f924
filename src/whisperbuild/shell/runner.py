"""External command execution with privilege escalation and bounded retries."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from whisperbuild.errors import CommandFailed
from whisperbuild.observability import StructuredLogger

T = TypeVar("T")

RETRY_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.5

# Tail of captured output kept in error context.
_OUTPUT_LIMIT = 2000


def _is_root() -> bool:
    getuid = getattr(os, "geteuid", None)
    return getuid is not None and getuid() == 0


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


@dataclass(slots=True)
class ShellRunner:
    """Runs commands from the repository root, streaming output by default."""

    cwd: Path
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    env: Mapping[str, str] | None = None
    is_root: Callable[[], bool] = _is_root
    which: Callable[[str], str | None] = shutil.which
    sleep: Callable[[float], None] = time.sleep

    def sudo(self, args: Sequence[str]) -> list[str]:
        """Prefix *args* with ``sudo`` when not root and sudo is installed.

        Both checks run on every call.
        """
        if self.is_root() or self.which("sudo") is None:
            return list(args)
        return ["sudo", *args]

    def command(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(str(arg) for arg in args)
        workdir = cwd if cwd is not None else self.cwd
        self.logger.info("command", f"$ {shlex.join(argv)}", extra={"cwd": str(workdir)})
        try:
            completed = subprocess.run(
                argv,
                cwd=str(workdir),
                env=dict(self.env) if self.env is not None else None,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CommandFailed(
                f"Executable not found: {argv[0]}",
                exit_code=127,
                args=argv,
                hint="Install the tool and ensure it is available in PATH.",
                context={"cwd": str(workdir)},
            ) from exc

        result = CommandResult(
            argv=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.returncode != 0:
            raise CommandFailed(
                f"command failed with exit code {result.returncode}: {shlex.join(argv)}",
                exit_code=result.returncode,
                args=argv,
                hint="Re-run the command from the working directory below to reproduce.",
                context={
                    "cwd": str(workdir),
                    "stdout": result.stdout[-_OUTPUT_LIMIT:],
                    "stderr": result.stderr[-_OUTPUT_LIMIT:],
                },
            )
        return result

    def run(
        self,
        command_line: str,
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        return self.command(shlex.split(command_line), cwd=cwd, capture=capture)

    def retry(
        self,
        operation: Callable[[], T],
        *,
        description: str,
        attempts: int = RETRY_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
    ) -> T:
        return retry(
            operation,
            description=description,
            logger=self.logger,
            attempts=attempts,
            base_delay=base_delay,
            sleep=self.sleep,
        )


def retry(
    operation: Callable[[], T],
    *,
    description: str,
    logger: StructuredLogger,
    attempts: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: tuple[type[Exception], ...] = (CommandFailed,),
) -> T:
    """Run *operation* up to *attempts* times with linear backoff.

    The delay before retry ``n`` is ``n * base_delay``. A warning is logged
    before every retry and the last failure is re-raised once attempts are
    exhausted.
    """
    for attempt in range(1, attempts):
        try:
            return operation()
        except retry_on:
            logger.warning(
                "retry",
                f"{description} failed (attempt {attempt}/{attempts}). Retrying...",
                extra={"attempt": attempt, "attempts": attempts},
            )
            sleep(base_delay * attempt)
    # The final attempt propagates its failure unchanged.
    return operation()
