"""Plugin subsystem for ShapeKit diff lifecycle extensions."""

from shapepack.plugins.base import (
    DIFF_HOOKS,
    PLUGIN_API_VERSION,
    PLUGIN_CONFIG_ENV_VAR,
    PLUGIN_CONFIG_VERSION,
    DiffEndEvent,
    DiffStartEvent,
    LifecyclePlugin,
)
from shapepack.plugins.exceptions import PluginConfigError, PluginError, PluginLoadError
from shapepack.plugins.loader import load_plugin_manager_from_file
from shapepack.plugins.manager import PluginDiagnostic, PluginManager
from shapepack.plugins.reference import DiffTracePlugin
from shapepack.plugins.runtime import (
    get_active_plugin_manager,
    reset_plugin_runtime_cache,
    use_plugin_manager,
    use_plugins_from_config,
)

__all__ = [
    "PLUGIN_API_VERSION",
    "PLUGIN_CONFIG_VERSION",
    "PLUGIN_CONFIG_ENV_VAR",
    "DIFF_HOOKS",
    "PluginError",
    "PluginConfigError",
    "PluginLoadError",
    "DiffStartEvent",
    "DiffEndEvent",
    "LifecyclePlugin",
    "PluginDiagnostic",
    "PluginManager",
    "DiffTracePlugin",
    "load_plugin_manager_from_file",
    "get_active_plugin_manager",
    "use_plugin_manager",
    "use_plugins_from_config",
    "reset_plugin_runtime_cache",
]
