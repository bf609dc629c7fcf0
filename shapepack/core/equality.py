"""Deep structural equality and identity equality over reflected values."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from typing import Any

from shapepack.core.mirror import (
    custom_description,
    custom_dump_value,
    has_custom_description,
    has_dump_value,
    reflect,
)
from shapepack.core.types import DisplayStyle

_STRUCTURAL_CONTAINERS = (list, tuple, deque, Mapping, set, frozenset)


def structurally_equal(left: Any, right: Any) -> bool:
    """Return True when two values are deeply equal.

    Types with their own ``__eq__`` are trusted; builtin containers and plain
    objects are compared child by child. Reference cycles terminate: a pair
    already under comparison is assumed equal.
    """
    return _StructuralComparison().equal(left, right)


def identical(left: Any, right: Any) -> bool:
    """Reference identity, only meaningful for class-style values."""
    if left is not right:
        return False
    return reflect(left).display_style is DisplayStyle.CLASS


class _StructuralComparison:
    __slots__ = ("_in_progress",)

    def __init__(self) -> None:
        self._in_progress: set[tuple[int, int]] = set()

    def equal(self, left: Any, right: Any) -> bool:
        if left is right:
            return True
        if type(left) is not type(right):
            return False

        if has_custom_description(left) and has_custom_description(right):
            return custom_description(left) == custom_description(right)
        if has_dump_value(left) and has_dump_value(right):
            return self.equal(custom_dump_value(left), custom_dump_value(right))
        if _defines_equality(left):
            return bool(left == right)

        left_mirror = reflect(left)
        right_mirror = reflect(right)
        if left_mirror.display_style is not right_mirror.display_style:
            return False

        style = left_mirror.display_style
        if style is DisplayStyle.SCALAR or style is DisplayStyle.SET:
            return bool(left == right)

        pair = (id(left), id(right))
        if pair in self._in_progress:
            return True
        self._in_progress.add(pair)
        try:
            if style is DisplayStyle.DICTIONARY:
                return self._mappings_equal(left, right)
            if len(left_mirror.children) != len(right_mirror.children):
                return False
            return all(
                left_child.label == right_child.label
                and self.equal(left_child.value, right_child.value)
                for left_child, right_child in zip(left_mirror.children, right_mirror.children)
            )
        finally:
            self._in_progress.discard(pair)

    def _mappings_equal(self, left: Mapping[Any, Any], right: Mapping[Any, Any]) -> bool:
        if len(left) != len(right):
            return False
        for key, value in left.items():
            if key not in right:
                return False
            if not self.equal(value, right[key]):
                return False
        return True


def _defines_equality(value: Any) -> bool:
    if isinstance(value, _STRUCTURAL_CONTAINERS):
        return False
    if hasattr(value, "__dump_mirror__"):
        return False
    return type(value).__eq__ is not object.__eq__
