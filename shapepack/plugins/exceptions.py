"""Errors raised while configuring diff lifecycle plugins."""

from __future__ import annotations


class PluginError(Exception):
    """Base class for plugin errors.

    ``source`` names what failed to load: a config path or an entrypoint.
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class PluginConfigError(PluginError):
    """The plugin config file is unreadable or malformed."""


class PluginLoadError(PluginError):
    """A configured entrypoint could not be imported, instantiated or used."""
