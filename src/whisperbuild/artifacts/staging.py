"""Collect packed archives into a flat publish directory."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from whisperbuild.config import Settings
from whisperbuild.errors import ValidationError
from whisperbuild.observability import StructuredLogger

ARCHIVE_SUFFIX = ".tgz"


class ArtifactKind(StrEnum):
    BINDING = "addon"
    LANGUAGE = "js"


_KIND_ALIASES = {
    "addon": ArtifactKind.BINDING,
    "binding": ArtifactKind.BINDING,
    "js": ArtifactKind.LANGUAGE,
    "language": ArtifactKind.LANGUAGE,
}


def parse_kind(value: str | None) -> ArtifactKind | None:
    if value is None:
        return None
    kind = _KIND_ALIASES.get(value)
    if kind is None:
        raise ValidationError(
            f"Unknown artifact filter: {value}",
            hint=f"Expected one of {', '.join(sorted(_KIND_ALIASES))}.",
            context={"filter": value},
        )
    return kind


def classify(file_name: str, settings: Settings) -> ArtifactKind | None:
    if file_name == settings.language_archive_name:
        return ArtifactKind.LANGUAGE
    if file_name.startswith(settings.binding_archive_prefix) and file_name.endswith(ARCHIVE_SUFFIX):
        return ArtifactKind.BINDING
    return None


@dataclass(slots=True)
class ArtifactStager:
    store: Path
    publish_dir: Path
    settings: Settings = field(default_factory=Settings)
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def matches(self, file_name: str, kind: ArtifactKind | None) -> bool:
        if not file_name.endswith(ARCHIVE_SUFFIX):
            return False
        if kind is None:
            return True
        return classify(file_name, self.settings) is kind

    def stage(self, kind: ArtifactKind | None = None) -> list[Path]:
        """Clear the publish directory and copy every matching archive into it."""
        shutil.rmtree(self.publish_dir, ignore_errors=True)
        self.publish_dir.mkdir(parents=True, exist_ok=True)

        staged: list[Path] = []
        if not self.store.is_dir():
            return staged
        for archive in sorted(path for path in self.store.rglob("*") if path.is_file()):
            if not self.matches(archive.name, kind):
                continue
            destination = self.publish_dir / archive.name
            shutil.copyfile(archive, destination)
            staged.append(destination)
            self.logger.info("stage", f"staged {archive.name}", extra={"source": str(archive)})
        return staged
