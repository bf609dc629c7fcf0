"""Versioned plugin configuration loader."""

from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any

from shapepack.plugins.base import DIFF_HOOKS, PLUGIN_API_VERSION, PLUGIN_CONFIG_VERSION
from shapepack.plugins.exceptions import PluginConfigError, PluginLoadError
from shapepack.plugins.manager import PluginManager

_ENTRY_KEYS = frozenset({"entrypoint", "options", "enabled"})


def load_plugin_manager_from_file(path: str | Path) -> PluginManager:
    """Load a plugin manager from JSON config.

    Config shape::

        {"config_version": 1,
         "plugins": [{"entrypoint": "pkg.module:Plugin", "options": {...}}]}

    Every enabled plugin must implement at least one diff hook.
    """
    config_path = Path(path)
    entries = _read_plugin_entries(config_path)

    plugins: list[object] = []
    for index, entry in enumerate(entries, start=1):
        plugin = _load_entry(entry, index=index, source=str(config_path))
        if plugin is not None:
            plugins.append(plugin)
    return PluginManager(plugins=tuple(plugins))


def _read_plugin_entries(config_path: Path) -> list[Any]:
    source = str(config_path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise PluginConfigError(
            f"Cannot read plugin config ({config_path}): {error}", source=source
        ) from error

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as error:
        raise PluginConfigError(
            f"Invalid plugin config JSON ({config_path}): {error}", source=source
        ) from error

    if not isinstance(raw, dict):
        raise PluginConfigError(
            f"Plugin config must be a JSON object ({config_path}).", source=source
        )

    version = raw.get("config_version")
    if version != PLUGIN_CONFIG_VERSION:
        raise PluginConfigError(
            f"Unsupported plugin config version {version!r}; expected {PLUGIN_CONFIG_VERSION}.",
            source=source,
        )

    entries = raw.get("plugins")
    if not isinstance(entries, list):
        raise PluginConfigError(
            "Plugin config key 'plugins' must be a JSON array.", source=source
        )
    return entries


def _load_entry(entry: Any, *, index: int, source: str) -> object | None:
    if not isinstance(entry, dict):
        raise PluginConfigError(f"Plugin entry #{index} must be a JSON object.", source=source)

    unknown = sorted(set(entry) - _ENTRY_KEYS)
    if unknown:
        raise PluginConfigError(
            f"Plugin entry #{index} contains unsupported keys: {', '.join(unknown)}",
            source=source,
        )

    enabled = entry.get("enabled", True)
    if not isinstance(enabled, bool):
        raise PluginConfigError(
            f"Plugin entry #{index} key 'enabled' must be boolean.", source=source
        )
    if not enabled:
        return None

    entrypoint = entry.get("entrypoint")
    if not isinstance(entrypoint, str) or ":" not in entrypoint:
        raise PluginConfigError(
            f"Plugin entry #{index} key 'entrypoint' must be 'module:attribute'.",
            source=source,
        )

    options = entry.get("options", {})
    if not isinstance(options, dict):
        raise PluginConfigError(
            f"Plugin entry #{index} key 'options' must be a JSON object.", source=source
        )

    plugin = _instantiate(_resolve_entrypoint(entrypoint, index=index), entrypoint, options)
    _check_compatible(plugin, entrypoint)
    return plugin


def _resolve_entrypoint(entrypoint: str, *, index: int) -> object:
    module_name, _, attribute = entrypoint.partition(":")
    try:
        module = importlib.import_module(module_name)
    except Exception as error:
        raise PluginLoadError(
            f"Plugin entry #{index} failed to import module '{module_name}': {error}",
            source=entrypoint,
        ) from error

    try:
        return getattr(module, attribute)
    except AttributeError as error:
        raise PluginLoadError(
            f"Plugin entry #{index} could not find attribute '{attribute}' in '{module_name}'.",
            source=entrypoint,
        ) from error


def _instantiate(target: object, entrypoint: str, options: dict[str, Any]) -> object:
    if callable(target):
        try:
            return target(**options)
        except Exception as error:
            raise PluginLoadError(
                f"Plugin '{entrypoint}' failed to instantiate with options "
                f"{sorted(options)}: {error}",
                source=entrypoint,
            ) from error

    if options:
        raise PluginLoadError(
            f"Plugin '{entrypoint}' is not callable and cannot accept options.",
            source=entrypoint,
        )
    return target


def _check_compatible(plugin: object, entrypoint: str) -> None:
    version = str(getattr(plugin, "api_version", PLUGIN_API_VERSION))
    if version.split(".", 1)[0] != PLUGIN_API_VERSION.split(".", 1)[0]:
        raise PluginLoadError(
            f"Plugin '{entrypoint}' declares unsupported api_version "
            f"{version!r}; expected {PLUGIN_API_VERSION}.",
            source=entrypoint,
        )
    if not any(callable(getattr(plugin, hook, None)) for hook in DIFF_HOOKS):
        raise PluginLoadError(
            f"Plugin '{entrypoint}' implements none of: {', '.join(DIFF_HOOKS)}.",
            source=entrypoint,
        )
