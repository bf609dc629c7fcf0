"""Diff subsystem for ShapeKit."""

from shapepack.diff.alignment import Alignment, align
from shapepack.diff.assertion import AssertionResult, assert_no_difference, check_no_difference
from shapepack.diff.engine import diff
from shapepack.diff.exceptions import DiffError, NoDifferenceError
from shapepack.diff.formatting import DIFF_FORMAT_ENV_VAR, DiffFormat, resolve_format

__all__ = [
    "DIFF_FORMAT_ENV_VAR",
    "DiffFormat",
    "resolve_format",
    "Alignment",
    "align",
    "diff",
    "AssertionResult",
    "assert_no_difference",
    "check_no_difference",
    "DiffError",
    "NoDifferenceError",
]
