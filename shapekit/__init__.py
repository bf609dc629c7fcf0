"""Stable public API surface for ShapeKit.

This module is the supported import path for library users.
"""

from __future__ import annotations

from shapepack.core import (
    Child,
    DisplayStyle,
    KeyValue,
    Mirror,
    dump,
    reflect,
    structurally_equal,
)
from shapepack.diff import (
    AssertionResult,
    DiffFormat,
    NoDifferenceError,
    assert_no_difference,
    check_no_difference,
    diff,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DiffFormat",
    "DisplayStyle",
    "Mirror",
    "Child",
    "KeyValue",
    "AssertionResult",
    "NoDifferenceError",
    "diff",
    "dump",
    "reflect",
    "structurally_equal",
    "check_no_difference",
    "assert_no_difference",
]
