"""Read, rewrite, and write ``package.json`` descriptors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from whisperbuild.errors import ValidationError


def read_descriptor(path: Path) -> dict[str, Any]:
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValidationError(
            "Package descriptor not found.",
            hint="Run from the repository root or pass --repo.",
            context={"operation": "read_descriptor", "path": str(path)},
        ) from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Package descriptor is not valid JSON.",
            context={"operation": "read_descriptor", "path": str(path)},
        ) from exc
    if not isinstance(parsed, dict):
        raise ValidationError(
            "Package descriptor has invalid structure.",
            context={"operation": "read_descriptor", "path": str(path)},
        )
    return parsed


def descriptor_version(descriptor: dict[str, Any], *, path: Path | None = None) -> str:
    version = descriptor.get("version")
    if not isinstance(version, str) or not version:
        raise ValidationError(
            "Package descriptor is missing a version.",
            context={"operation": "descriptor_version", "path": str(path or "")},
        )
    return version


def write_descriptor(path: Path, descriptor: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(descriptor, indent=2) + "\n", encoding="utf-8")
    return path


def stamp_version(descriptor: dict[str, Any], version: str) -> dict[str, Any]:
    return {**descriptor, "version": version}


def pin_optional_dependencies(descriptor: dict[str, Any], version: str) -> dict[str, Any]:
    """Point every optional dependency at *version*, keeping names and order."""
    optional = descriptor.get("optionalDependencies")
    if not optional:
        return dict(descriptor)
    return {
        **descriptor,
        "optionalDependencies": {name: version for name in optional},
    }
