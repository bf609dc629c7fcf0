"""Versioned plugin interface and diff lifecycle event payloads."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

PLUGIN_API_VERSION = "1.0"
PLUGIN_CONFIG_VERSION = 1
PLUGIN_CONFIG_ENV_VAR = "SHAPEKIT_PLUGIN_CONFIG"
DIFF_HOOKS = ("on_diff_start", "on_diff_end")

DiffStatus = Literal["ok", "error"]


@dataclass(frozen=True, slots=True)
class DiffStartEvent:
    """Sent before two values are compared."""

    left_type: str
    right_type: str
    format_name: str

    @property
    def comparison(self) -> str:
        return f"{self.left_type} -> {self.right_type}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DiffEndEvent:
    """Sent after a comparison finished or raised.

    ``first_only_lines`` and ``second_only_lines`` count the rendered lines
    carrying the first-only and second-only markers; both are ``0`` when the
    values are identical and ``None`` when the diff raised.
    """

    left_type: str
    right_type: str
    status: DiffStatus
    identical: bool | None = None
    line_count: int | None = None
    first_only_lines: int | None = None
    second_only_lines: int | None = None
    error_type: str | None = None
    error_message: str | None = None

    @property
    def comparison(self) -> str:
        return f"{self.left_type} -> {self.right_type}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LifecyclePlugin:
    """No-op base for diff lifecycle plugins (API v1.x)."""

    api_version = PLUGIN_API_VERSION
    name = "lifecycle-plugin"

    def on_diff_start(self, event: DiffStartEvent) -> None:
        return None

    def on_diff_end(self, event: DiffEndEvent) -> None:
        return None
