"""CUDA toolkit provisioning for Linux CI hosts."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from whisperbuild.errors import ValidationError
from whisperbuild.shell import dpkg
from whisperbuild.shell.apt import apt
from whisperbuild.shell.github import GitHubActions
from whisperbuild.shell.runner import ShellRunner
from whisperbuild.shell.wget import wget

NVIDIA_REPO = "https://developer.download.nvidia.com/compute/cuda/repos/ubuntu2204/x86_64"
KEYRING_VERSION = "1.1-1"
KEYRING_FILE = Path("/tmp/cuda-keyring.deb")


@dataclass(frozen=True, slots=True)
class CudaVersion:
    major: int
    minor: int
    patch: int


@dataclass(frozen=True, slots=True)
class CudaPaths:
    pkg: str
    cuda: str
    bin: str
    lib: str


def parse_cuda_version(version: str) -> CudaVersion:
    parts = version.split(".")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValidationError(
            f"invalid cuda version: {version} (expected major.minor.patch)",
            context={"version": version},
        )
    major, minor, patch = (int(part) for part in parts)
    return CudaVersion(major=major, minor=minor, patch=patch)


def cuda_paths(version: str) -> CudaPaths:
    parsed = parse_cuda_version(version)
    root = f"/usr/local/cuda-{parsed.major}.{parsed.minor}"
    return CudaPaths(
        pkg=f"cuda-toolkit-{parsed.major}-{parsed.minor}",
        cuda=root,
        bin=f"{root}/bin",
        lib=f"{root}/lib64",
    )


@dataclass(slots=True)
class CudaProvisioner:
    runner: ShellRunner
    env: Mapping[str, str]

    @classmethod
    def from_env(cls, runner: ShellRunner) -> CudaProvisioner:
        return cls(runner=runner, env=dict(os.environ))

    @property
    def github(self) -> GitHubActions:
        return GitHubActions(env=self.env)

    def emit_paths(self, version: str) -> CudaPaths:
        """Create the toolkit root, hand it to ``$USER``, and publish the paths."""
        paths = cuda_paths(version)
        try:
            Path(paths.cuda).mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.runner.command(self.runner.sudo(["mkdir", "-p", paths.cuda]))
        self.normalize_cache_permissions(version)

        (
            self.github.output("path", paths.cuda)
            .output("bin", paths.bin)
            .output("lib", paths.lib)
            .output("pkg", paths.pkg)
        )
        return paths

    def normalize_cache_permissions(self, version: str) -> None:
        paths = cuda_paths(version)
        owner = self.env.get("USER")
        if owner:
            self.runner.command(self.runner.sudo(["chown", "-R", f"{owner}:{owner}", paths.cuda]))

    def install(self, version: str) -> CudaPaths:
        paths = cuda_paths(version)
        nvcc = Path(paths.bin) / "nvcc"
        if nvcc.exists():
            self.runner.logger.info("cuda", f"using cached {paths.pkg} from {paths.cuda}")
        else:
            self.runner.logger.info("cuda", f"installing {paths.pkg} from {NVIDIA_REPO}")
            wget(self.runner).file(KEYRING_FILE).download(
                f"{NVIDIA_REPO}/cuda-keyring_{KEYRING_VERSION}_all.deb"
            )
            dpkg.install(self.runner, KEYRING_FILE)
            # Toolkit only; CI hosts have no GPU driver.
            apt(self.runner).update().batch(paths.pkg).install()

        if self.env.get("GITHUB_ENV") and self.env.get("GITHUB_PATH"):
            (
                self.github.export("CUDA_PATH", paths.cuda)
                .append("LD_LIBRARY_PATH", paths.lib)
                .path(paths.bin)
            )
        self.runner.logger.info("cuda", f"cuda toolkit installed at {paths.cuda}")
        return paths
