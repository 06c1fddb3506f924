import io
import json
from pathlib import Path

from whisperbuild.errors import CommandFailed, ErrorCode, InvalidBackend, ValidationError
from whisperbuild.observability import StructuredLogger


def test_error_str_lists_hint_and_context() -> None:
    error = ValidationError(
        "Package descriptor not found.",
        hint="Run from the repository root or pass --repo.",
        context={"path": "/repo/package.json", "empty": ""},
    )

    rendered = str(error)
    assert rendered.splitlines()[0] == "Package descriptor not found."
    assert "Hint: Run from the repository root or pass --repo." in rendered
    assert "  path: /repo/package.json" in rendered
    assert "empty" not in rendered


def test_command_failed_context_includes_command_and_exit_code() -> None:
    error = CommandFailed("failed", exit_code=7, args=["cmake", "--build", "out"])

    assert error.exit_code == 7
    assert error.argv == ("cmake", "--build", "out")
    assert error.to_dict()["code"] == ErrorCode.COMMAND_FAILED
    assert error.context["command"] == "cmake --build out"
    assert error.context["exit_code"] == "7"


def test_to_dict_omits_missing_hint() -> None:
    payload = InvalidBackend("Invalid backend", context={"backend": "rocm"}).to_dict()

    assert payload["code"] == "E_INVALID_BACKEND"
    assert "hint" not in payload
    assert payload["context"] == {"backend": "rocm"}


def test_logger_filters_and_exports_records(tmp_path: Path) -> None:
    logger = StructuredLogger()
    logger.info("stage", "stage started", stage="native", platform="x64-linux-cpu-gnu")
    logger.warning("retry", "apt update failed (attempt 1/3). Retrying...")

    assert len(logger.records_for_stage("native")) == 1
    assert [record["operation"] for record in logger.warnings()] == ["retry"]

    output = logger.to_json_lines(tmp_path / "logs" / "run.jsonl")
    lines = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert lines[0]["stage"] == "native"
    assert lines[1]["level"] == "warning"


def test_logger_echo_prefixes_scope_and_level() -> None:
    stream = io.StringIO()
    logger = StructuredLogger(echo=True, stream=stream)

    logger.info("stage", "stage started", stage="binding", platform="arm64-darwin-metal")
    logger.warning("retry", "retrying")

    assert stream.getvalue().splitlines() == [
        "[binding/arm64-darwin-metal] stage started",
        "warning: retrying",
    ]
