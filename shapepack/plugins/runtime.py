"""Selecting the plugin manager that observes ``diff`` calls."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import os
from pathlib import Path
from typing import Iterator

from shapepack.plugins.base import PLUGIN_CONFIG_ENV_VAR
from shapepack.plugins.exceptions import PluginError
from shapepack.plugins.loader import load_plugin_manager_from_file
from shapepack.plugins.manager import PluginManager

_ACTIVE_PLUGIN_MANAGER: ContextVar[PluginManager | None] = ContextVar(
    "shapekit_active_plugin_manager",
    default=None,
)
_NO_PLUGINS = PluginManager(plugins=())
_CONFIGURED: dict[str, PluginManager] = {}


def get_active_plugin_manager() -> PluginManager:
    """Manager for the next diff: a context override, else ``SHAPEKIT_PLUGIN_CONFIG``.

    Never raises. A config that cannot be loaded is replaced by an empty
    manager holding one ``load`` diagnostic; the warning is issued once per
    config path until :func:`reset_plugin_runtime_cache`.
    """
    manager = _ACTIVE_PLUGIN_MANAGER.get()
    if manager is not None:
        return manager

    config_path = os.getenv(PLUGIN_CONFIG_ENV_VAR, "").strip()
    if not config_path:
        return _NO_PLUGINS

    configured = _CONFIGURED.get(config_path)
    if configured is None:
        configured = _load_configured(config_path)
        _CONFIGURED[config_path] = configured
    return configured


def _load_configured(config_path: str) -> PluginManager:
    try:
        return load_plugin_manager_from_file(config_path)
    except PluginError as error:
        fallback = PluginManager(plugins=())
        fallback.record_failure(error.source or config_path, "load", error)
        return fallback


@contextmanager
def use_plugin_manager(manager: PluginManager) -> Iterator[PluginManager]:
    """Observe diffs in the current context with ``manager``."""
    token = _ACTIVE_PLUGIN_MANAGER.set(manager)
    try:
        yield manager
    finally:
        _ACTIVE_PLUGIN_MANAGER.reset(token)


@contextmanager
def use_plugins_from_config(path: str | Path) -> Iterator[PluginManager]:
    """Like :func:`use_plugin_manager`; config errors raise here instead of warning."""
    with use_plugin_manager(load_plugin_manager_from_file(path)) as manager:
        yield manager


def reset_plugin_runtime_cache() -> None:
    _CONFIGURED.clear()
