"""Reference plugin: one NDJSON record per ``diff`` call."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import time
from typing import Any

from shapepack.plugins.base import DiffEndEvent, DiffStartEvent, LifecyclePlugin


@dataclass(slots=True)
class DiffTracePlugin(LifecyclePlugin):
    """Append a summary of every comparison to ``output_path``.

    Records look like::

        {"comparison": "list -> list", "elapsed_ms": 0.21, "first_only_lines": 1,
         "format": "default", "identical": false, "line_count": 5,
         "plugin": "diff-trace", "second_only_lines": 1, "status": "ok"}

    With ``only_differences`` identical comparisons are skipped.
    """

    output_path: str = "shapekit-trace.ndjson"
    name: str = "diff-trace"
    only_differences: bool = False
    _pending: list[tuple[str, float]] = field(default_factory=list, init=False, repr=False)

    def on_diff_start(self, event: DiffStartEvent) -> None:
        # diff() may be re-entered from a plugin or __dump_mirror__, hence a stack.
        self._pending.append((event.format_name, time.perf_counter()))

    def on_diff_end(self, event: DiffEndEvent) -> None:
        format_name, started = self._pending.pop() if self._pending else (None, None)
        if self.only_differences and event.identical:
            return

        record: dict[str, Any] = {
            "plugin": self.name,
            "comparison": event.comparison,
            "format": format_name,
            "status": event.status,
            "identical": event.identical,
            "line_count": event.line_count,
            "first_only_lines": event.first_only_lines,
            "second_only_lines": event.second_only_lines,
            "elapsed_ms": None
            if started is None
            else round((time.perf_counter() - started) * 1000, 3),
        }
        if event.status == "error":
            record["error"] = f"{event.error_type}: {event.error_message}"
        self._append(record)

    def _append(self, record: dict[str, Any]) -> None:
        path = Path(self.output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(
                json.dumps(record, ensure_ascii=True, sort_keys=True, separators=(",", ":"))
                + "\n"
            )
