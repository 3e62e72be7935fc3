"""Plugins observing hook runs.

A plugin is referenced by import path in the ``config.plugins`` section and
receives its options on construction:

    "plugins": [{"plugin": "my_package.plugins:Timer", "options": {"warn-after": 5}}]

Plugins subclass ``HookPlugin`` and override the callbacks they need.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from hookcaptain.errors import PluginLoadError

if TYPE_CHECKING:
    from hookcaptain.config import Action, Configuration, HookConfig, PluginConfig
    from hookcaptain.context import ExecutionContext
    from hookcaptain.runner import ActionResult, HookResult

logger = logging.getLogger(__name__)


class HookPlugin:
    """Base class for plugins. All callbacks are no-ops by default."""

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        self.options = options or {}

    def before_hook(self, ctx: ExecutionContext, hook_config: HookConfig) -> None:
        pass

    def before_action(self, ctx: ExecutionContext, action: Action) -> None:
        pass

    def after_action(self, ctx: ExecutionContext, action: Action, result: ActionResult) -> None:
        pass

    def after_hook(self, ctx: ExecutionContext, result: HookResult) -> None:
        pass


def create_plugin(plugin_config: PluginConfig) -> HookPlugin:
    """Import and instantiate a configured plugin.

    Accepts ``package.module:Class`` and ``package.module.Class``.

    Raises:
        PluginLoadError: If the class cannot be imported or is not a HookPlugin
    """
    identifier = plugin_config.plugin
    if ":" in identifier:
        module_path, _, class_name = identifier.partition(":")
    else:
        module_path, _, class_name = identifier.rpartition(".")
    if not module_path or not class_name:
        raise PluginLoadError(f"Invalid plugin reference: {identifier}")

    try:
        module = importlib.import_module(module_path)
        plugin_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise PluginLoadError(f"Failed to load plugin {identifier}: {e}") from e

    if not isinstance(plugin_class, type) or not issubclass(plugin_class, HookPlugin):
        raise PluginLoadError(f"Plugin {identifier} must subclass HookPlugin")

    plugin = plugin_class(dict(plugin_config.options))
    logger.debug("Loaded plugin %s", identifier)
    return plugin


def load_plugins(config: Configuration) -> list[HookPlugin]:
    """Instantiate all configured plugins in configuration order."""
    return [create_plugin(p) for p in config.plugins]
