"""Distribution stage: pack prepared trees into canonical npm tarballs."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from whisperbuild.errors import AmbiguousPackOutput, ValidationError
from whisperbuild.stages.base import StageContext

STAGING_DIR_NAME = ".staging"


def pack_to_archive(ctx: StageContext, source_dir: Path, output_path: Path) -> Path:
    """Run ``npm pack`` in *source_dir* and copy its single tarball to *output_path*."""
    if not source_dir.is_dir():
        raise ValidationError(
            "Nothing to pack: source tree is missing.",
            hint="Run the stage that produces this tree first.",
            context={"operation": "pack", "source": str(source_dir)},
        )

    staging = output_path.parent / STAGING_DIR_NAME
    shutil.rmtree(staging, ignore_errors=True)
    staging.mkdir(parents=True, exist_ok=True)
    try:
        ctx.runner.command(
            [ctx.toolchain.npm, "pack", "--pack-destination", str(staging)],
            cwd=source_dir,
        )
        tarballs = sorted(path for path in staging.iterdir() if path.name.endswith(".tgz"))
        if len(tarballs) != 1:
            raise AmbiguousPackOutput(
                f"Expected exactly one tarball from npm pack, found {len(tarballs)}.",
                hint="Check the package's files/prepack configuration.",
                context={
                    "operation": "pack",
                    "source": str(source_dir),
                    "staging": str(staging),
                    "found": ", ".join(path.name for path in tarballs),
                },
            )
        output_path.unlink(missing_ok=True)
        shutil.copyfile(tarballs[0], output_path)
    finally:
        shutil.rmtree(staging, ignore_errors=True)
    return output_path


@dataclass(slots=True)
class DistributionStage:
    name: str = "distribution"

    def run(self, ctx: StageContext) -> None:
        if ctx.options.dry_run:
            ctx.log(self.name, "dry run: skipping pack")
            return

        archive_dir = ctx.layout.archive_dir(ctx.settings.scope)
        language = pack_to_archive(
            ctx,
            ctx.layout.js_install,
            archive_dir / ctx.settings.language_archive_name,
        )
        ctx.log(self.name, f"packed {language.name}")
        binding = pack_to_archive(
            ctx,
            ctx.layout.addon_store(ctx.platform_id),
            archive_dir / ctx.settings.binding_archive_name(ctx.platform_id),
        )
        ctx.log(self.name, f"packed {binding.name}")
