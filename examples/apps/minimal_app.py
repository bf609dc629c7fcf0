"""Minimal app showing ShapeKit diffs of nested application state."""

from __future__ import annotations

from dataclasses import dataclass, field

import shapekit


@dataclass
class LineItem:
    sku: str
    quantity: int


@dataclass
class Order:
    id: int
    customer: str
    items: list[LineItem] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)


def main() -> None:
    before = Order(
        id=42,
        customer="Blob",
        items=[LineItem("apple", 1), LineItem("pear", 2), LineItem("plum", 3)],
        tags={"new", "priority"},
    )
    after = Order(
        id=42,
        customer="Blob",
        items=[LineItem("apple", 1), LineItem("pear", 5), LineItem("plum", 3)],
        tags={"new", "priority", "gift"},
    )

    difference = shapekit.diff(before, after)
    if difference is None:
        raise SystemExit("expected a difference between order snapshots")
    print(difference)

    result = shapekit.check_no_difference(before, before)
    if not result.passed:
        raise SystemExit(result.message("order snapshot drifted"))


if __name__ == "__main__":
    main()
