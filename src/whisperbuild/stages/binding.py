"""Binding stage: compile the Node-API addon against the native install tree."""

from __future__ import annotations

import shutil
from dataclasses import dataclass

from whisperbuild.artifacts.aliases import materialize_dylib_aliases
from whisperbuild.builders.cmake import ConfigBuilder
from whisperbuild.descriptors import (
    descriptor_version,
    read_descriptor,
    stamp_version,
    write_descriptor,
)
from whisperbuild.errors import ValidationError
from whisperbuild.stages.base import StageContext


@dataclass(slots=True)
class BindingStage:
    name: str = "binding"

    def run(self, ctx: StageContext) -> None:
        if ctx.options.dry_run:
            ctx.log(self.name, "dry run: skipping binding build")
            return

        pid = ctx.platform_id
        native_dir = ctx.layout.whisper_install(pid)
        if not native_dir.is_dir():
            raise ValidationError(
                "Native install tree is missing.",
                hint="Run the native stage for this target first.",
                context={"stage": self.name, "platform": pid, "path": str(native_dir)},
            )

        store = ctx.layout.addon_store(pid)
        shutil.rmtree(store, ignore_errors=True)
        store.mkdir(parents=True, exist_ok=True)
        bins = store / "bins"

        self.config(ctx).configure().build().install(prefix=bins)
        aliases = materialize_dylib_aliases(bins, logger=ctx.logger)
        ctx.log(self.name, f"installed addon into {bins}", aliases=len(aliases))

        root = read_descriptor(ctx.layout.root_descriptor)
        version = descriptor_version(root, path=ctx.layout.root_descriptor)
        binding = read_descriptor(ctx.layout.addon_descriptor(pid))
        write_descriptor(store / "package.json", stamp_version(binding, version))

        ctx.runner.command(ctx.toolchain.tsc_command(ctx.layout.addon_tsconfig(pid), store / "dist"))

    def config(self, ctx: StageContext) -> ConfigBuilder:
        pid = ctx.platform_id
        native_dir = ctx.layout.whisper_install(pid)
        bin_dir = native_dir / "bin"
        return (
            ConfigBuilder(ctx.runner, cmake=ctx.toolchain.cmake)
            .source(ctx.layout.binding_source)
            .build_dir(ctx.layout.addon_build(pid))
            .generator(ctx.settings.generator)
            .build_type(ctx.settings.build_type)
            .define("WHISPER_TRIPLE", pid)
            .define("WHISPER_INCLUDE_DIR", native_dir / "include")
            .define("WHISPER_LIB_DIR", native_dir / "lib")
            .define_if("WHISPER_BIN_DIR", bin_dir, bin_dir.is_dir())
        )

    def clean(self, ctx: StageContext) -> None:
        if ctx.options.dry_run:
            return
        build_dir = ctx.layout.addon_build(ctx.platform_id)
        # An interrupted configure leaves a tree without a cache; cmake cannot clean it.
        if not (build_dir / "CMakeCache.txt").is_file():
            ctx.log(self.name, f"nothing to clean in {build_dir}")
            return
        ctx.runner.command([ctx.toolchain.cmake, "--build", str(build_dir), "--target", "clean"])
