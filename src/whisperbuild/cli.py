"""Command-line entrypoint.

Usage:
    whisperbuild all [--backend cuda] [--ci] [--dry-run]
    whisperbuild native | binding | language-package | pack
    whisperbuild clean
    whisperbuild stage [addon|js]
    whisperbuild cuda install 12.6.3
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

from whisperbuild.artifacts.staging import ArtifactStager, parse_kind
from whisperbuild.config import BuildOptions, Layout, Settings
from whisperbuild.cuda import CudaProvisioner
from whisperbuild.errors import BuildError, CommandFailed
from whisperbuild.observability import StructuredLogger
from whisperbuild.platforms import VALID_BACKENDS, TargetResolver
from whisperbuild.provision import install_ci_dependencies, repo_clean
from whisperbuild.shell.runner import ShellRunner
from whisperbuild.stages import Pipeline, StageContext
from whisperbuild.toolchain import Toolchain

BUILD_COMMANDS = {
    "native": (),
    "binding": ("addon",),
    "language-package": ("js",),
    "pack": ("distribution",),
    "all": (),
}


def _ci_from_env() -> bool:
    return os.environ.get("CI", "").lower() in {"1", "true", "yes"}


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--backend", choices=VALID_BACKENDS, default=None, help="Override the detected backend")
    parser.add_argument("--dry-run", action="store_true", help="Resolve the target but run nothing")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="whisperbuild", description="whisper.cpp release builder")
    parser.add_argument("--repo", type=Path, default=Path.cwd(), help="Repository root (default: cwd)")
    parser.add_argument("--log-file", type=Path, default=None, help="Write structured logs as JSON lines")
    parser.add_argument("--quiet", action="store_true", help="Do not echo log records to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, aliases in BUILD_COMMANDS.items():
        build_p = sub.add_parser(name, aliases=list(aliases), help=f"Run the {name} pipeline")
        _add_target_options(build_p)
        build_p.add_argument("--ci", action="store_true", default=None, help="Portable CI build flags")
        build_p.set_defaults(handler=cmd_build, pipeline=name)

    clean_p = sub.add_parser("clean", help="Clean native and addon build outputs")
    _add_target_options(clean_p)
    clean_p.set_defaults(handler=cmd_clean)

    stage_p = sub.add_parser("stage", help="Copy tarballs to artifacts/")
    stage_p.add_argument("filter", nargs="?", choices=["addon", "binding", "js", "language"], default=None)
    stage_p.set_defaults(handler=cmd_stage)

    repo_clean_p = sub.add_parser("repo-clean", help="Remove every generated tree")
    repo_clean_p.set_defaults(handler=cmd_repo_clean)

    install_p = sub.add_parser("install", help="Install Linux CI dependencies")
    install_p.set_defaults(handler=cmd_install)

    cuda_p = sub.add_parser("cuda", help="CUDA toolkit helpers for CI")
    cuda_sub = cuda_p.add_subparsers(dest="cuda_command", required=True)
    for name, help_text in (
        ("paths", "Resolve canonical CUDA paths"),
        ("install", "Install the CUDA toolkit via apt"),
        ("normalize-cache-permissions", "Normalize CUDA cache directory ownership"),
    ):
        cuda_cmd = cuda_sub.add_parser(name, help=help_text)
        cuda_cmd.add_argument("cuda", help="CUDA version (major.minor.patch)")
        cuda_cmd.set_defaults(handler=cmd_cuda)

    return parser


def make_context(args: argparse.Namespace, logger: StructuredLogger) -> StageContext:
    layout = Layout(repo=args.repo.resolve())
    ci = getattr(args, "ci", None)
    options = BuildOptions(
        dry_run=args.dry_run,
        ci=_ci_from_env() if ci is None else ci,
    )
    target = TargetResolver().resolve_target(args.backend)
    return StageContext(
        target=target,
        layout=layout,
        runner=ShellRunner(cwd=layout.repo, logger=logger),
        toolchain=Toolchain.discover(layout.repo),
        settings=Settings.from_env(),
        options=options,
        logger=logger,
    )


def cmd_build(args: argparse.Namespace, logger: StructuredLogger) -> None:
    ctx = make_context(args, logger)
    logger.info("target", f"target {ctx.platform_id}", platform=ctx.platform_id)
    Pipeline(context=ctx).run(args.pipeline)


def cmd_clean(args: argparse.Namespace, logger: StructuredLogger) -> None:
    Pipeline(context=make_context(args, logger)).clean()


def cmd_stage(args: argparse.Namespace, logger: StructuredLogger) -> None:
    layout = Layout(repo=args.repo.resolve())
    stager = ArtifactStager(
        store=layout.npm_store,
        publish_dir=layout.artifacts,
        settings=Settings.from_env(),
        logger=logger,
    )
    stager.stage(parse_kind(args.filter))


def cmd_repo_clean(args: argparse.Namespace, logger: StructuredLogger) -> None:
    for path in repo_clean(Layout(repo=args.repo.resolve())):
        logger.info("repo-clean", f"removed {path}")
    print("repo-clean-ok")


def cmd_install(args: argparse.Namespace, logger: StructuredLogger) -> None:
    install_ci_dependencies(ShellRunner(cwd=args.repo.resolve(), logger=logger))


def cmd_cuda(args: argparse.Namespace, logger: StructuredLogger) -> None:
    provisioner = CudaProvisioner.from_env(ShellRunner(cwd=args.repo.resolve(), logger=logger))
    if args.cuda_command == "paths":
        print(json.dumps(asdict(provisioner.emit_paths(args.cuda))))
    elif args.cuda_command == "install":
        provisioner.install(args.cuda)
    else:
        provisioner.normalize_cache_permissions(args.cuda)


def process_exit_code(exit_code: int) -> int:
    """Map a child's return code to ours; signal deaths (negative) follow the shell convention."""
    if exit_code < 0:
        return 128 + abs(exit_code)
    return exit_code or 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = StructuredLogger(echo=not args.quiet)
    try:
        args.handler(args, logger)
    except CommandFailed as exc:
        print(f"error: {exc}", file=sys.stderr)
        return process_exit_code(exc.exit_code)
    except BuildError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_file is not None:
            logger.to_json_lines(args.log_file)
    return 0


def run() -> None:
    sys.exit(main())
