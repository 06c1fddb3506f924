"""Shell execution substrate and thin wrappers around host tools."""

from __future__ import annotations

from .runner import RETRY_ATTEMPTS, RETRY_BASE_DELAY, CommandResult, ShellRunner, retry

__all__ = [
    "RETRY_ATTEMPTS",
    "RETRY_BASE_DELAY",
    "CommandResult",
    "ShellRunner",
    "retry",
]
