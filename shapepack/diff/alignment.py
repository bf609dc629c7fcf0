"""Sequence alignment of two child lists under an equivalence predicate.

The alignment is a Myers shortest edit script (O((N + M) · D) time). Unlike
``difflib`` it works on unhashable elements and arbitrary equivalence
predicates, which is what labeled children need.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Literal, Sequence, TypeVar

T = TypeVar("T")

AlignmentStep = Literal["pair", "replacement", "removal", "insertion"]


@dataclass(frozen=True, slots=True)
class Alignment(Generic[T]):
    """Removal/insertion offsets for two (possibly sorted) element lists."""

    left: list[T]
    right: list[T]
    removals: frozenset[int]
    insertions: frozenset[int]

    def step(self, left_offset: int, right_offset: int) -> AlignmentStep:
        """Classify a lockstep walk position.

        A removal and an insertion at the same step are paired as a
        replacement so the caller renders a nested diff.
        """
        is_removal = left_offset in self.removals
        is_insertion = right_offset in self.insertions
        if is_removal and is_insertion:
            return "replacement"
        if is_removal:
            return "removal"
        if is_insertion:
            return "insertion"
        return "pair"


def align(
    left: Sequence[T],
    right: Sequence[T],
    equivalent: Callable[[T, T], bool],
    *,
    key: Callable[[T], str] | None = None,
) -> Alignment[T]:
    """Align ``left`` against ``right``.

    When ``key`` is given both sides are stable-sorted by it first, so
    unordered containers align independently of storage order.
    """
    left_items = sorted(left, key=key) if key is not None else list(left)
    right_items = sorted(right, key=key) if key is not None else list(right)
    removals, insertions = _shortest_edit(left_items, right_items, equivalent)
    return Alignment(
        left=left_items,
        right=right_items,
        removals=frozenset(removals),
        insertions=frozenset(insertions),
    )


def _shortest_edit(
    left: Sequence[T],
    right: Sequence[T],
    equivalent: Callable[[T, T], bool],
) -> tuple[set[int], set[int]]:
    n = len(left)
    m = len(right)
    # frontier maps diagonal k = x - y to the furthest x reached.
    frontier: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []

    for d in range(n + m + 1):
        trace.append(dict(frontier))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
                x = frontier[k + 1]
            else:
                x = frontier[k - 1] + 1
            y = x - k
            while x < n and y < m and equivalent(left[x], right[y]):
                x += 1
                y += 1
            frontier[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)

    raise AssertionError("edit script search exhausted")  # pragma: no cover


def _backtrack(trace: list[dict[int, int]], n: int, m: int) -> tuple[set[int], set[int]]:
    removals: set[int] = set()
    insertions: set[int] = set()
    x, y = n, m

    for d in range(len(trace) - 1, -1, -1):
        frontier = trace[d]
        k = x - y
        if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
            previous_k = k + 1
        else:
            previous_k = k - 1
        previous_x = frontier[previous_k]
        previous_y = previous_x - previous_k

        while x > previous_x and y > previous_y:
            x -= 1
            y -= 1

        if d > 0:
            if x == previous_x:
                insertions.add(previous_y)
            else:
                removals.add(previous_x)
        x, y = previous_x, previous_y

    return removals, insertions
