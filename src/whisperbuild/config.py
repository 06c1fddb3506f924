"""Repository layout, build options, and release settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

BACKEND_ENV = "NODE_WHISPER_CPP_BACKEND"

DEFAULT_WHISPER_REPO = "https://github.com/ggml-org/whisper.cpp.git"
DEFAULT_WHISPER_REF = "v1.7.6"


@dataclass(frozen=True, slots=True)
class BuildOptions:
    dry_run: bool = False
    ci: bool = False


@dataclass(frozen=True, slots=True)
class Settings:
    whisper_repo: str = DEFAULT_WHISPER_REPO
    whisper_ref: str = DEFAULT_WHISPER_REF
    scope: str = "@spader"
    package_base: str = "node-whisper-cpp"
    build_type: str = "Release"
    generator: str = "Ninja"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        return cls(
            whisper_repo=env.get("WHISPERBUILD_WHISPER_REPO") or DEFAULT_WHISPER_REPO,
            whisper_ref=env.get("WHISPERBUILD_WHISPER_REF") or DEFAULT_WHISPER_REF,
        )

    @property
    def language_archive_name(self) -> str:
        return f"{self.package_base}.tgz"

    @property
    def binding_archive_prefix(self) -> str:
        return f"{self.package_base}-"

    def binding_archive_name(self, platform_id: str) -> str:
        return f"{self.binding_archive_prefix}{platform_id}.tgz"


@dataclass(frozen=True, slots=True)
class Layout:
    """Every on-disk location derived from the repository root.

    Per-platform directories are keyed by PlatformId so builds for different
    targets never share an output tree.
    """

    repo: Path

    @property
    def cache(self) -> Path:
        return self.repo / ".cache"

    @property
    def source_root(self) -> Path:
        return self.cache / "source"

    @property
    def whisper_source(self) -> Path:
        return self.source_root / "whisper.cpp"

    @property
    def build_root(self) -> Path:
        return self.cache / "build"

    @property
    def store(self) -> Path:
        return self.cache / "store"

    @property
    def npm_store(self) -> Path:
        return self.store / "npm"

    @property
    def js_install(self) -> Path:
        return self.store / "js"

    @property
    def artifacts(self) -> Path:
        return self.repo / "artifacts"

    @property
    def root_descriptor(self) -> Path:
        return self.repo / "package.json"

    @property
    def root_tsconfig(self) -> Path:
        return self.repo / "tsconfig.json"

    @property
    def binding_source(self) -> Path:
        return self.repo / "packages" / "node-whisper-cpp"

    @property
    def platform_packages(self) -> Path:
        return self.repo / "packages" / "platform"

    def whisper_build(self, platform_id: str) -> Path:
        return self.build_root / platform_id / "whisper"

    def whisper_install(self, platform_id: str) -> Path:
        return self.store / "whisper.cpp" / platform_id

    def addon_build(self, platform_id: str) -> Path:
        return self.build_root / platform_id / "addon"

    def addon_store(self, platform_id: str) -> Path:
        return self.store / "addon" / platform_id

    def addon_descriptor(self, platform_id: str) -> Path:
        return self.platform_packages / platform_id / "package.json"

    def addon_tsconfig(self, platform_id: str) -> Path:
        return self.platform_packages / platform_id / "tsconfig.json"

    def archive_dir(self, scope: str) -> Path:
        return self.npm_store / scope
