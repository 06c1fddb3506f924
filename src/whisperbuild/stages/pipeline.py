"""Named pipelines composed from the four build stages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from whisperbuild.errors import ValidationError
from whisperbuild.stages.base import Stage, StageContext, StageState
from whisperbuild.stages.binding import BindingStage
from whisperbuild.stages.distribution import DistributionStage
from whisperbuild.stages.language import LanguagePackageStage
from whisperbuild.stages.native import NativeStage

PIPELINES: dict[str, tuple[str, ...]] = {
    "native": ("native",),
    "binding": ("native", "binding"),
    "language-package": ("language-package",),
    "pack": ("distribution",),
    "all": ("native", "binding", "language-package", "distribution"),
}

# The addon build tree lives under the native build root, so it is cleaned first.
CLEAN_ORDER = ("binding", "native")

PIPELINE_ALIASES = {
    "addon": "binding",
    "js": "language-package",
    "distribution": "pack",
}


def resolve_pipeline(name: str) -> tuple[str, ...]:
    canonical = PIPELINE_ALIASES.get(name, name)
    stages = PIPELINES.get(canonical)
    if stages is None:
        raise ValidationError(
            f"Unknown pipeline: {name}",
            hint=f"Expected one of {', '.join(sorted([*PIPELINES, *PIPELINE_ALIASES]))}.",
            context={"pipeline": name},
        )
    return stages


def default_stages() -> dict[str, Stage]:
    return {
        stage.name: stage
        for stage in (NativeStage(), BindingStage(), LanguagePackageStage(), DistributionStage())
    }


@dataclass(slots=True)
class PipelineReport:
    name: str
    states: dict[str, StageState] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return all(state is StageState.SUCCEEDED for state in self.states.values())


@dataclass(slots=True)
class Pipeline:
    """Runs stages strictly in order; the first failure aborts the pipeline.

    ``last_report`` keeps per-stage states even when ``run`` raises.
    """

    context: StageContext
    stages: Mapping[str, Stage] = field(default_factory=default_stages)
    last_report: PipelineReport | None = None

    def run(self, name: str) -> PipelineReport:
        stage_names = resolve_pipeline(name)
        report = PipelineReport(
            name=name,
            states={stage_name: StageState.NOT_STARTED for stage_name in stage_names},
        )
        self.last_report = report

        for stage_name in stage_names:
            stage = self.stages[stage_name]
            report.states[stage_name] = StageState.RUNNING
            self.context.log(stage_name, "stage started")
            try:
                stage.run(self.context)
            except Exception:
                report.states[stage_name] = StageState.FAILED
                self.context.logger.log(
                    operation="stage",
                    message="stage failed",
                    stage=stage_name,
                    platform=self.context.platform_id,
                    level="error",
                )
                raise
            report.states[stage_name] = StageState.SUCCEEDED
            self.context.log(stage_name, "stage succeeded")
        return report

    def clean(self) -> None:
        """Run the binding tool's own clean, then drop the native build root."""
        for stage_name in CLEAN_ORDER:
            clean = getattr(self.stages[stage_name], "clean", None)
            if clean is not None:
                clean(self.context)
