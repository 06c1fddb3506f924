"""Build target resolution for the current host."""

from __future__ import annotations

from .probe import CapabilityProbe, ProbeResult, ProbeStatus, SubprocessProbe
from .target import (
    Arch,
    Backend,
    Libc,
    Os,
    VALID_BACKENDS,
    Target,
    TargetResolver,
    detect_target,
    get_package_name,
    get_platform_id,
    parse_backend,
    resolve_target,
)

__all__ = [
    "Arch",
    "Backend",
    "CapabilityProbe",
    "Libc",
    "Os",
    "ProbeResult",
    "ProbeStatus",
    "SubprocessProbe",
    "VALID_BACKENDS",
    "Target",
    "TargetResolver",
    "detect_target",
    "get_package_name",
    "get_platform_id",
    "parse_backend",
    "resolve_target",
]
