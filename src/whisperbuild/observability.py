"""Structured logging and observability helpers."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO


@dataclass(slots=True)
class StructuredLogger:
    """Collects structured log records and optionally echoes them to a stream.

    Records are kept in memory so tests and reports can inspect what a
    pipeline did; ``echo`` mirrors each record as one human-readable line.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    echo: bool = False
    stream: TextIO | None = None

    def log(
        self,
        *,
        operation: str,
        message: str,
        stage: str | None = None,
        platform: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "stage": stage,
            "platform": platform,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        if self.echo:
            self._emit(record)

    def info(self, operation: str, message: str, **kwargs: Any) -> None:
        self.log(operation=operation, message=message, level="info", **kwargs)

    def warning(self, operation: str, message: str, **kwargs: Any) -> None:
        self.log(operation=operation, message=message, level="warning", **kwargs)

    def records_for_stage(self, stage: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("stage") == stage]

    def warnings(self) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("level") == "warning"]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path

    def _emit(self, record: dict[str, Any]) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        prefix = "warning: " if record["level"] == "warning" else ""
        scope = "/".join(part for part in (record["stage"], record["platform"]) if part)
        if scope:
            prefix += f"[{scope}] "
        print(f"{prefix}{record['message']}", file=stream, flush=True)
