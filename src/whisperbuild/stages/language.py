"""LanguagePackage stage: the platform-independent JavaScript package."""

from __future__ import annotations

import shutil
from dataclasses import dataclass

from whisperbuild.descriptors import (
    descriptor_version,
    pin_optional_dependencies,
    read_descriptor,
    write_descriptor,
)
from whisperbuild.stages.base import StageContext


@dataclass(slots=True)
class LanguagePackageStage:
    name: str = "language-package"

    def run(self, ctx: StageContext) -> None:
        if ctx.options.dry_run:
            ctx.log(self.name, "dry run: skipping language package")
            return

        install_dir = ctx.layout.js_install
        shutil.rmtree(install_dir, ignore_errors=True)
        (install_dir / "dist").mkdir(parents=True, exist_ok=True)

        root = read_descriptor(ctx.layout.root_descriptor)
        version = descriptor_version(root, path=ctx.layout.root_descriptor)
        write_descriptor(install_dir / "package.json", pin_optional_dependencies(root, version))
        ctx.log(self.name, f"staged package descriptor at version {version}")

        ctx.runner.command(ctx.toolchain.tsc_command(ctx.layout.root_tsconfig, install_dir / "dist"))
