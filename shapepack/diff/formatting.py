"""Line markers used when rendering a diff."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import ClassVar

DIFF_FORMAT_ENV_VAR = "SHAPEKIT_DIFF_FORMAT"


@dataclass(frozen=True, slots=True)
class DiffFormat:
    """Marker strings prefixed to lines of a rendered diff.

    ``first`` marks lines only in the first value, ``second`` lines only in
    the second value and ``both`` unchanged lines.
    """

    first: str
    second: str
    both: str

    default: ClassVar[DiffFormat]
    proportional: ClassVar[DiffFormat]

    @property
    def name(self) -> str:
        for name, preset in _presets().items():
            if preset == self:
                return name
        return "custom"

    @classmethod
    def from_name(cls, name: str) -> DiffFormat:
        normalized = name.strip().lower()
        presets = _presets()
        if normalized not in presets:
            raise ValueError(
                f"unknown diff format {name!r}; expected one of: {', '.join(sorted(presets))}"
            )
        return presets[normalized]


# ASCII markers for monospaced output.
DiffFormat.default = DiffFormat(first="-", second="+", both=" ")
# Minus sign and figure space keep widths aligned in proportional fonts.
DiffFormat.proportional = DiffFormat(first="\u2212", second="+", both="\u2007")


def _presets() -> dict[str, DiffFormat]:
    return {
        "default": DiffFormat.default,
        "proportional": DiffFormat.proportional,
    }


def resolve_format(name: str | None = None) -> DiffFormat:
    """Resolve a preset by name, falling back to ``SHAPEKIT_DIFF_FORMAT``."""
    if name is None or not name.strip():
        name = os.getenv(DIFF_FORMAT_ENV_VAR, "").strip() or "default"
    return DiffFormat.from_name(name)
