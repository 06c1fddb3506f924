"""Native stage: build and install whisper.cpp for one target."""

from __future__ import annotations

import shutil
from dataclasses import dataclass

from whisperbuild.builders.cmake import ConfigBuilder, DefineValue
from whisperbuild.platforms import Target
from whisperbuild.stages.base import StageContext


def linux_rpath_defines(target: Target) -> tuple[tuple[str, DefineValue], ...]:
    """Let installed Linux binaries find their siblings via ``$ORIGIN``."""
    if target.os != "linux":
        return ()
    return (
        ("CMAKE_INSTALL_RPATH", "$ORIGIN"),
        ("CMAKE_BUILD_WITH_INSTALL_RPATH", True),
    )


@dataclass(slots=True)
class NativeStage:
    name: str = "native"

    def run(self, ctx: StageContext) -> None:
        if ctx.options.dry_run:
            ctx.log(self.name, "dry run: skipping native build")
            return

        self.ensure_source(ctx)
        install_dir = ctx.layout.whisper_install(ctx.platform_id)
        shutil.rmtree(install_dir, ignore_errors=True)

        ctx.log(self.name, f"building whisper.cpp into {install_dir}")
        self.config(ctx).configure().build().install()

    def ensure_source(self, ctx: StageContext) -> None:
        source = ctx.layout.whisper_source
        if source.exists():
            return
        source.parent.mkdir(parents=True, exist_ok=True)
        ctx.log(self.name, f"cloning {ctx.settings.whisper_repo}@{ctx.settings.whisper_ref}")
        ctx.runner.command(
            [
                ctx.toolchain.git,
                "clone",
                "--depth",
                "1",
                "--branch",
                ctx.settings.whisper_ref,
                ctx.settings.whisper_repo,
                str(source),
            ]
        )

    def config(self, ctx: StageContext) -> ConfigBuilder:
        target = ctx.target
        ci = ctx.options.ci
        return (
            ConfigBuilder(ctx.runner, cmake=ctx.toolchain.cmake)
            .source(ctx.layout.whisper_source)
            .build_dir(ctx.layout.whisper_build(ctx.platform_id))
            .generator(ctx.settings.generator)
            .build_type(ctx.settings.build_type)
            .prefix(ctx.layout.whisper_install(ctx.platform_id))
            .define("BUILD_SHARED_LIBS", True)
            .define("WHISPER_BUILD_EXAMPLES", False)
            .define("WHISPER_BUILD_TESTS", False)
            .define_if("GGML_METAL", True, target.backend == "metal")
            .define_if("GGML_CUDA", True, target.backend == "cuda")
            .define_if("GGML_VULKAN", True, target.backend == "vulkan")
            .defines(linux_rpath_defines(target))
            .define_if("GGML_NATIVE", False, ci)
            .define_if("GGML_CPU_ALL_VARIANTS", True, ci)
            .define_if("GGML_BACKEND_DL", True, ci)
        )

    def clean(self, ctx: StageContext) -> None:
        """Remove the whole build root, for every platform at once."""
        if ctx.options.dry_run:
            return
        shutil.rmtree(ctx.layout.build_root, ignore_errors=True)
        ctx.log(self.name, f"removed {ctx.layout.build_root}")
