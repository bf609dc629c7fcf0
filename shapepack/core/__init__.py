"""Core introspection, equality and pretty-printing primitives for ShapeKit."""

from shapepack.core.dump import dump, hash_count, indent_by, indent_lines
from shapepack.core.equality import identical, structurally_equal
from shapepack.core.mirror import Child, KeyValue, Mirror, reflect, type_name
from shapepack.core.types import REVISITED, UNBOUNDED, DisplayStyle

__all__ = [
    "Child",
    "KeyValue",
    "Mirror",
    "DisplayStyle",
    "REVISITED",
    "UNBOUNDED",
    "reflect",
    "type_name",
    "dump",
    "hash_count",
    "indent_by",
    "indent_lines",
    "identical",
    "structurally_equal",
]
