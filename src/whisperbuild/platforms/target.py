"""Build target model and host detection."""

from __future__ import annotations

import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, cast, get_args

from whisperbuild.config import BACKEND_ENV
from whisperbuild.errors import InvalidBackend, UnsupportedPlatform, ValidationError
from whisperbuild.platforms.probe import CapabilityProbe, SubprocessProbe

Os = Literal["darwin", "linux"]
Arch = Literal["arm64", "x64"]
Backend = Literal["metal", "cpu", "cuda", "vulkan"]
Libc = Literal["gnu", "musl", "apple"]

VALID_OS: tuple[str, ...] = get_args(Os)
VALID_ARCH: tuple[str, ...] = get_args(Arch)
VALID_BACKENDS: tuple[str, ...] = get_args(Backend)

LINUX_BACKENDS = ("cpu", "cuda", "vulkan")
LINUX_LIBCS = ("gnu", "musl")

PACKAGE_BASE = "node-whisper-cpp"

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

# Probed in order; the first tool that answers wins.
BACKEND_PROBES: tuple[tuple[Backend, tuple[str, ...]], ...] = (
    ("cuda", ("nvidia-smi",)),
    ("vulkan", ("vulkaninfo",)),
)

LIBC_PROBE = ("ldd", "--version")


@dataclass(frozen=True, slots=True)
class Target:
    os: Os
    arch: Arch
    backend: Backend
    libc: Libc

    def __post_init__(self) -> None:
        context = {
            "os": self.os,
            "arch": self.arch,
            "backend": self.backend,
            "libc": self.libc,
        }
        if self.os not in VALID_OS or self.arch not in VALID_ARCH:
            raise ValidationError("Target has an unknown os or arch.", context=context)
        if self.backend not in VALID_BACKENDS:
            raise ValidationError("Target has an unknown backend.", context=context)
        if self.os == "darwin":
            if self.libc != "apple" or self.backend != "metal":
                raise ValidationError(
                    "Darwin targets must use libc=apple and backend=metal.",
                    context=context,
                )
        elif self.libc not in LINUX_LIBCS or self.backend not in LINUX_BACKENDS:
            raise ValidationError(
                "Linux targets must use a gnu/musl libc and a cpu/cuda/vulkan backend.",
                context=context,
            )

    @property
    def platform_id(self) -> str:
        return get_platform_id(self)

    @property
    def package_name(self) -> str:
        return get_package_name(self)


def get_platform_id(target: Target) -> str:
    parts = [target.arch, target.os, target.backend]
    if target.os == "linux":
        parts.append(target.libc)
    return "-".join(parts)


def get_package_name(target: Target) -> str:
    return f"{PACKAGE_BASE}-{get_platform_id(target)}"


def parse_backend(value: str, host_os: Os | None = None) -> Backend:
    if value not in VALID_BACKENDS:
        raise InvalidBackend(
            f"Invalid {BACKEND_ENV}: {value}",
            hint=f"Expected one of {', '.join(VALID_BACKENDS)}.",
            context={"backend": value},
        )
    allowed = ("metal",) if host_os == "darwin" else LINUX_BACKENDS
    if host_os is not None and value not in allowed:
        raise InvalidBackend(
            f"Backend {value} is not available on {host_os}.",
            hint=f"Expected one of {', '.join(allowed)}.",
            context={"backend": value, "os": host_os},
        )
    return cast(Backend, value)


@dataclass(slots=True)
class TargetResolver:
    """Detects the build target of the current host.

    ``system`` and ``machine`` default to the running interpreter's view of
    the host; tests pass explicit values along with a fake probe.
    """

    probe: CapabilityProbe = field(default_factory=SubprocessProbe)
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    system: str = field(default_factory=lambda: sys.platform)
    machine: str = field(default_factory=platform.machine)

    def detect_os(self) -> Os:
        if self.system.startswith("linux"):
            return "linux"
        if self.system == "darwin":
            return "darwin"
        raise UnsupportedPlatform(
            f"Unsupported OS: {self.system}",
            hint=f"Supported: {', '.join(VALID_OS)}.",
            context={"os": self.system},
        )

    def detect_arch(self) -> Arch:
        arch = _ARCH_ALIASES.get(self.machine.lower())
        if arch is None:
            raise UnsupportedPlatform(
                f"Unsupported architecture: {self.machine}",
                hint=f"Supported: {', '.join(VALID_ARCH)}.",
                context={"arch": self.machine},
            )
        return cast(Arch, arch)

    def detect_backend(self, host_os: Os) -> Backend:
        override = self.env.get(BACKEND_ENV)
        if override:
            return parse_backend(override, host_os)
        if host_os == "darwin":
            return "metal"
        for backend, argv in BACKEND_PROBES:
            if self.probe.probe(argv).present:
                return backend
        return "cpu"

    def detect_libc(self, host_os: Os) -> Libc:
        if host_os == "darwin":
            return "apple"
        # musl's ldd prints its banner and exits non-zero; output is kept either way.
        result = self.probe.probe(LIBC_PROBE)
        return "musl" if "musl" in result.output else "gnu"

    def detect_target(self) -> Target:
        host_os = self.detect_os()
        arch = self.detect_arch()
        return Target(
            os=host_os,
            arch=arch,
            backend=self.detect_backend(host_os),
            libc=self.detect_libc(host_os),
        )

    def resolve_target(self, backend_override: str | None = None) -> Target:
        """Detect the target, taking the backend from *backend_override* when given.

        An override skips the backend probes entirely.
        """
        if backend_override is None:
            return self.detect_target()
        host_os = self.detect_os()
        return Target(
            os=host_os,
            arch=self.detect_arch(),
            backend=parse_backend(backend_override, host_os),
            libc=self.detect_libc(host_os),
        )


def detect_target() -> Target:
    return TargetResolver().detect_target()


def resolve_target(backend_override: str | None = None) -> Target:
    return TargetResolver().resolve_target(backend_override)
