"""Native build tool drivers."""

from .cmake import BuiltTree, ConfigBuilder, ConfiguredTree, render_define

__all__ = [
    "BuiltTree",
    "ConfigBuilder",
    "ConfiguredTree",
    "render_define",
]
