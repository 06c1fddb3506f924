import sys
from pathlib import Path

import pytest

from whisperbuild.errors import CommandFailed
from whisperbuild.observability import StructuredLogger
from whisperbuild.shell import ShellRunner, retry


def test_sudo_prefix_depends_on_privilege_and_availability(tmp_path: Path) -> None:
    state = {"root": False, "sudo": "/usr/bin/sudo"}
    runner = ShellRunner(
        cwd=tmp_path,
        is_root=lambda: state["root"],
        which=lambda name: state["sudo"] if name == "sudo" else None,
    )

    assert runner.sudo(["apt-get", "update"]) == ["sudo", "apt-get", "update"]

    state["root"] = True
    assert runner.sudo(["apt-get", "update"]) == ["apt-get", "update"]

    state["root"] = False
    state["sudo"] = None
    assert runner.sudo(["dpkg", "-i", "x.deb"]) == ["dpkg", "-i", "x.deb"]


def test_command_runs_in_working_directory(tmp_path: Path) -> None:
    runner = ShellRunner(cwd=tmp_path)
    result = runner.command(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        capture=True,
    )

    assert result.returncode == 0
    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()
    assert runner.logger.records[0]["message"].startswith("$ ")


def test_command_failure_carries_exit_code_and_context(tmp_path: Path) -> None:
    runner = ShellRunner(cwd=tmp_path)

    with pytest.raises(CommandFailed) as excinfo:
        runner.command(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            capture=True,
        )

    error = excinfo.value
    assert error.exit_code == 3
    assert error.code == "E_COMMAND_FAILED"
    assert error.context["cwd"] == str(tmp_path)
    assert error.context["stderr"] == "boom"
    assert error.argv[0] == sys.executable


def test_missing_executable_maps_to_127(tmp_path: Path) -> None:
    runner = ShellRunner(cwd=tmp_path)

    with pytest.raises(CommandFailed) as excinfo:
        runner.command(["whisperbuild-definitely-missing-tool"])

    assert excinfo.value.exit_code == 127


def test_run_splits_command_line(tmp_path: Path) -> None:
    runner = ShellRunner(cwd=tmp_path)
    result = runner.run(f"'{sys.executable}' -c 'print(\"a b\")'", capture=True)

    assert result.stdout.strip() == "a b"


def test_retry_recovers_after_transient_failures() -> None:
    logger = StructuredLogger()
    delays: list[float] = []
    attempts = {"count": 0}

    def flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise CommandFailed("apt-get failed", exit_code=100, args=["apt-get", "update"])
        return "ok"

    assert retry(flaky, description="apt update", logger=logger, sleep=delays.append) == "ok"
    assert attempts["count"] == 3
    assert delays == [1.5, 3.0]
    assert len(logger.warnings()) == 2
    assert "attempt 1/3" in logger.warnings()[0]["message"]


def test_retry_reraises_last_failure_after_exhaustion() -> None:
    logger = StructuredLogger()
    delays: list[float] = []
    errors = [
        CommandFailed(f"failure {n}", exit_code=n, args=["apt-get", "install"])
        for n in (1, 2, 3)
    ]

    def always_fails() -> None:
        raise errors.pop(0)

    with pytest.raises(CommandFailed) as excinfo:
        retry(always_fails, description="apt install", logger=logger, sleep=delays.append)

    assert excinfo.value.exit_code == 3
    assert delays == [1.5, 3.0]
    assert len(logger.warnings()) == 2


def test_retry_does_not_catch_unrelated_errors() -> None:
    calls = {"count": 0}

    def broken() -> None:
        calls["count"] += 1
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        retry(broken, description="x", logger=StructuredLogger(), sleep=lambda _: None)
    assert calls["count"] == 1


def test_runner_retry_logs_through_runner_logger(tmp_path: Path) -> None:
    runner = ShellRunner(cwd=tmp_path, sleep=lambda _: None)
    outcomes = [CommandFailed("once", exit_code=1, args=["x"]), None]

    def operation() -> int:
        outcome = outcomes.pop(0)
        if outcome is not None:
            raise outcome
        return 42

    assert runner.retry(operation, description="x") == 42
    assert len(runner.logger.warnings()) == 1


def test_single_attempt_raises_without_warning() -> None:
    logger = StructuredLogger()
    error = CommandFailed("once", exit_code=4, args=["apt-get", "update"])

    def fails() -> None:
        raise error

    with pytest.raises(CommandFailed) as excinfo:
        retry(fails, description="apt update", logger=logger, attempts=1, sleep=lambda _: None)

    assert excinfo.value is error
    assert logger.warnings() == []
