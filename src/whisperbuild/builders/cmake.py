"""Declarative CMake configuration with explicitly ordered phases.

A :class:`ConfigBuilder` accumulates the configure invocation. Phases are
handles: ``configure()`` returns a :class:`ConfiguredTree`, whose ``build()``
returns a :class:`BuiltTree`, whose ``install()`` finishes the sequence. Each
phase spawns exactly one process; a non-zero exit raises ``CommandFailed``
and is never retried.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from whisperbuild.errors import ValidationError
from whisperbuild.shell.runner import ShellRunner

DefineValue = str | int | bool | Path

DEFAULT_BUILD_TYPE = "Release"


def render_define(key: str, value: DefineValue) -> str:
    if isinstance(value, bool):
        rendered = "ON" if value else "OFF"
    else:
        rendered = str(value)
    return f"-D{key}={rendered}"


class ConfigBuilder:
    def __init__(self, runner: ShellRunner, *, cmake: str = "cmake") -> None:
        self.runner = runner
        self.cmake = cmake
        self._source: Path | None = None
        self._build_dir: Path | None = None
        self._generator: str | None = None
        self._build_type = DEFAULT_BUILD_TYPE
        self._prefix: Path | None = None
        self._defines: list[str] = []

    def source(self, path: str | Path) -> ConfigBuilder:
        self._source = Path(path)
        return self

    def build_dir(self, path: str | Path) -> ConfigBuilder:
        self._build_dir = Path(path)
        return self

    def generator(self, name: str) -> ConfigBuilder:
        self._generator = name
        return self

    def build_type(self, name: str = DEFAULT_BUILD_TYPE) -> ConfigBuilder:
        self._build_type = name
        return self

    def prefix(self, path: str | Path) -> ConfigBuilder:
        self._prefix = Path(path)
        return self

    def define(self, key: str, value: DefineValue) -> ConfigBuilder:
        self._defines.append(render_define(key, value))
        return self

    def define_if(
        self,
        key: str,
        value: DefineValue,
        predicate: bool | Callable[[], bool],
    ) -> ConfigBuilder:
        """Append the define only if *predicate* holds right now."""
        enabled = predicate() if callable(predicate) else predicate
        if enabled:
            self.define(key, value)
        return self

    def defines(self, pairs: Iterable[tuple[str, DefineValue]]) -> ConfigBuilder:
        for key, value in pairs:
            self.define(key, value)
        return self

    @property
    def flags(self) -> tuple[str, ...]:
        return tuple(self._defines)

    def _tree(self) -> tuple[Path, Path]:
        if self._source is None or self._build_dir is None:
            raise ValidationError(
                "CMake configure requires both a source and a build directory.",
                context={
                    "source": str(self._source or ""),
                    "build_dir": str(self._build_dir or ""),
                },
            )
        return self._source, self._build_dir

    def configure_args(self) -> list[str]:
        source, build_dir = self._tree()
        args = [self.cmake, "-S", str(source), "-B", str(build_dir)]
        if self._generator:
            args.extend(["-G", self._generator])
        args.append(render_define("CMAKE_BUILD_TYPE", self._build_type))
        if self._prefix is not None:
            args.append(render_define("CMAKE_INSTALL_PREFIX", self._prefix))
        args.extend(self._defines)
        return args

    def configure(self) -> ConfiguredTree:
        _, build_dir = self._tree()
        self.runner.command(self.configure_args())
        return ConfiguredTree(
            runner=self.runner,
            cmake=self.cmake,
            build_dir=build_dir,
            build_type=self._build_type,
        )


@dataclass(frozen=True, slots=True)
class ConfiguredTree:
    runner: ShellRunner
    cmake: str
    build_dir: Path
    build_type: str

    def build_args(self) -> list[str]:
        return [self.cmake, "--build", str(self.build_dir), "--config", self.build_type]

    def build(self) -> BuiltTree:
        self.runner.command(self.build_args())
        return BuiltTree(
            runner=self.runner,
            cmake=self.cmake,
            build_dir=self.build_dir,
            build_type=self.build_type,
        )


@dataclass(frozen=True, slots=True)
class BuiltTree:
    runner: ShellRunner
    cmake: str
    build_dir: Path
    build_type: str

    def install_args(self, prefix: Path | None = None) -> list[str]:
        args = [self.cmake, "--install", str(self.build_dir), "--config", self.build_type]
        if prefix is not None:
            args.extend(["--prefix", str(prefix)])
        return args

    def install(self, prefix: Path | None = None) -> None:
        """Install the tree, optionally redirecting it under *prefix*."""
        self.runner.command(self.install_args(prefix))
