"""Fault-isolated dispatch of diff lifecycle hooks.

A plugin can observe a diff but never change or break it: whatever a hook
raises is recorded as a :class:`PluginDiagnostic` and surfaced as a
``RuntimeWarning`` while the diff carries on.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import warnings

from shapepack.plugins.base import DiffEndEvent, DiffStartEvent


@dataclass(frozen=True, slots=True)
class PluginDiagnostic:
    plugin_name: str
    hook: str
    error_type: str
    message: str
    comparison: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)

    def describe(self) -> str:
        where = f" comparison={self.comparison}" if self.comparison else ""
        return (
            f"ShapeKit plugin failure: plugin={self.plugin_name} hook={self.hook}{where} "
            f"error={self.error_type}: {self.message}"
        )


@dataclass(slots=True)
class PluginManager:
    """Runs hooks of the configured plugins around each ``diff`` call."""

    plugins: tuple[object, ...] = ()
    diagnostics: list[PluginDiagnostic] = field(default_factory=list)

    def clear_diagnostics(self) -> None:
        self.diagnostics.clear()

    def failures_for(self, hook: str) -> list[PluginDiagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.hook == hook]

    def on_diff_start(self, event: DiffStartEvent) -> None:
        self._dispatch("on_diff_start", event, event.comparison)

    def on_diff_end(self, event: DiffEndEvent) -> None:
        self._dispatch("on_diff_end", event, event.comparison)

    def record_failure(
        self,
        plugin_name: str,
        hook: str,
        error: Exception,
        *,
        comparison: str | None = None,
    ) -> PluginDiagnostic:
        diagnostic = PluginDiagnostic(
            plugin_name=plugin_name,
            hook=hook,
            error_type=error.__class__.__name__,
            message=str(error),
            comparison=comparison,
        )
        self.diagnostics.append(diagnostic)
        warnings.warn(diagnostic.describe(), RuntimeWarning, stacklevel=3)
        return diagnostic

    def _dispatch(self, hook: str, event: object, comparison: str) -> None:
        for plugin in self.plugins:
            callback = getattr(plugin, hook, None)
            if callback is None:
                continue
            try:
                callback(event)
            except Exception as error:
                self.record_failure(_plugin_name(plugin), hook, error, comparison=comparison)


def _plugin_name(plugin: object) -> str:
    return str(getattr(plugin, "name", plugin.__class__.__name__))
