"""Assertion helpers that explain failures with a structural diff."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shapepack.core.dump import indent_by
from shapepack.diff.engine import diff
from shapepack.diff.exceptions import NoDifferenceError
from shapepack.diff.formatting import DiffFormat


@dataclass(frozen=True, slots=True)
class AssertionResult:
    """Outcome of comparing an expected value against an actual value."""

    difference: str | None
    format: DiffFormat = DiffFormat.default

    @property
    def passed(self) -> bool:
        return self.difference is None

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def message(self, note: str | None = None) -> str:
        if self.difference is None:
            return "assert_no_difference passed"
        return (
            f"assert_no_difference failed: {note or '…'}\n"
            "\n"
            f"{indent_by(self.difference, 2)}\n"
            "\n"
            f"(First: {self.format.first}, Second: {self.format.second})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "pass" if self.passed else "fail",
            "exit_code": self.exit_code,
            "identical": self.passed,
            "format": self.format.name,
            "diff": self.difference,
        }


def check_no_difference(
    expected: Any,
    actual: Any,
    *,
    format: DiffFormat = DiffFormat.default,
) -> AssertionResult:
    """Compare ``expected`` with ``actual`` without raising."""
    return AssertionResult(difference=diff(expected, actual, format=format), format=format)


def assert_no_difference(
    expected: Any,
    actual: Any,
    message: str | None = None,
    *,
    format: DiffFormat = DiffFormat.default,
) -> None:
    """Raise :class:`NoDifferenceError` describing how the values differ."""
    result = check_no_difference(expected, actual, format=format)
    if not result.passed:
        raise NoDifferenceError(result.message(message), difference=result.difference)
