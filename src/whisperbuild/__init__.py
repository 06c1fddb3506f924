"""Build and release orchestration for whisper.cpp Node bindings."""

from .artifacts import ArtifactKind, ArtifactStager, materialize_dylib_aliases
from .builders import ConfigBuilder
from .config import BuildOptions, Layout, Settings
from .errors import (
    AmbiguousPackOutput,
    BuildError,
    CommandFailed,
    InvalidBackend,
    UnsupportedPlatform,
    ValidationError,
)
from .observability import StructuredLogger
from .platforms import (
    Target,
    TargetResolver,
    detect_target,
    get_package_name,
    get_platform_id,
    resolve_target,
)
from .shell import ShellRunner, retry
from .stages import Pipeline, PipelineReport, StageContext, StageState
from .toolchain import Toolchain

__all__ = [
    "AmbiguousPackOutput",
    "ArtifactKind",
    "ArtifactStager",
    "BuildError",
    "BuildOptions",
    "CommandFailed",
    "ConfigBuilder",
    "InvalidBackend",
    "Layout",
    "Pipeline",
    "PipelineReport",
    "Settings",
    "ShellRunner",
    "StageContext",
    "StageState",
    "StructuredLogger",
    "Target",
    "TargetResolver",
    "Toolchain",
    "UnsupportedPlatform",
    "ValidationError",
    "detect_target",
    "get_package_name",
    "get_platform_id",
    "materialize_dylib_aliases",
    "resolve_target",
    "retry",
]
