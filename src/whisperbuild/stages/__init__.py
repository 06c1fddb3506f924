"""Build stages and the pipelines that compose them."""

from .base import Stage, StageContext, StageState
from .binding import BindingStage
from .distribution import DistributionStage, pack_to_archive
from .language import LanguagePackageStage
from .native import NativeStage, linux_rpath_defines
from .pipeline import PIPELINES, Pipeline, PipelineReport, resolve_pipeline

__all__ = [
    "PIPELINES",
    "BindingStage",
    "DistributionStage",
    "LanguagePackageStage",
    "NativeStage",
    "Pipeline",
    "PipelineReport",
    "Stage",
    "StageContext",
    "StageState",
    "linux_rpath_defines",
    "pack_to_archive",
    "resolve_pipeline",
]
