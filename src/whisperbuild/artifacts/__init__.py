"""Post-build artifact normalization and publication staging."""

from .aliases import materialize_dylib_aliases
from .staging import ArtifactKind, ArtifactStager, classify, parse_kind

__all__ = [
    "ArtifactKind",
    "ArtifactStager",
    "classify",
    "materialize_dylib_aliases",
    "parse_kind",
]
