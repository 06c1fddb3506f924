"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the CLI and library surfaces."""

    VALIDATION = "E_VALIDATION"
    UNSUPPORTED_PLATFORM = "E_UNSUPPORTED_PLATFORM"
    INVALID_BACKEND = "E_INVALID_BACKEND"
    COMMAND_FAILED = "E_COMMAND_FAILED"
    AMBIGUOUS_PACK_OUTPUT = "E_AMBIGUOUS_PACK_OUTPUT"


class BuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class UnsupportedPlatform(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.UNSUPPORTED_PLATFORM, hint=hint, context=context)


class InvalidBackend(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INVALID_BACKEND, hint=hint, context=context)


class CommandFailed(BuildError):
    """An external process exited non-zero.

    ``exit_code`` and ``argv`` are kept as attributes so the CLI can propagate
    the failing process's exit status.
    """

    exit_code: int
    argv: tuple[str, ...]

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        args: Sequence[str],
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"command": " ".join(args), "exit_code": str(exit_code), **(context or {})}
        super().__init__(message, code=ErrorCode.COMMAND_FAILED, hint=hint, context=merged)
        self.exit_code = exit_code
        self.argv = tuple(args)


class AmbiguousPackOutput(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.AMBIGUOUS_PACK_OUTPUT, hint=hint, context=context)


__all__ = [
    "AmbiguousPackOutput",
    "BuildError",
    "CommandFailed",
    "ErrorCode",
    "InvalidBackend",
    "UnsupportedPlatform",
    "ValidationError",
]
