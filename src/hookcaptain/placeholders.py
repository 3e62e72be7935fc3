"""Placeholder substitution for command-line actions.

Command templates may embed placeholders that are resolved right before the
command runs:

    {$NAME}
    {$NAME|option:value|option:value}

Supported placeholders:

    CONFIG          value-of: bootstrap | git-directory | python-path
                              | custom>>KEY | plugin>>PLUGIN_ID.KEY
    ENV             value-of: variable name, default: fallback
    ARG             value-of: argument index or git name (e.g. file), default: fallback
    BRANCH          current branch
    STAGED_FILES    of-type, in-dir, separated-by (default " ")
    CHANGED_FILES   of-type, in-dir, separated-by (default " ")

Every miss (unknown placeholder, unknown config value, missing custom key,
missing plugin or plugin option) resolves to an empty string, so a
misconfigured action still runs.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hookcaptain.config import Configuration
    from hookcaptain.context import ExecutionContext

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "custom>>"
PLUGIN_PREFIX = "plugin>>"

PLACEHOLDER_PATTERN = re.compile(r"\{\$([A-Z_]+)((?:\|[^|}]*)*)\}", re.IGNORECASE)

# config value name -> Configuration accessor
CONFIG_VALUES: dict[str, Callable[[Configuration], str]] = {
    "bootstrap": lambda config: config.get_bootstrap(),
    "git-directory": lambda config: config.git_directory,
    "python-path": lambda config: config.python_path,
}


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def config_value(value_of: str, config: Configuration) -> str:
    """Resolve a ``value-of`` expression of the CONFIG placeholder.

    Args:
        value_of: Direct value name, ``custom>>KEY`` or ``plugin>>PLUGIN_ID.KEY``
        config: Loaded configuration

    Returns:
        The value as a string, empty if it cannot be found
    """
    if value_of.startswith(CUSTOM_PREFIX):
        key = value_of[len(CUSTOM_PREFIX) :]
        return _stringify(config.get_custom_settings().get(key, ""))

    if value_of.startswith(PLUGIN_PREFIX):
        # plugin identifiers are dotted import paths, so the last dot separates the option key
        plugin_id, _, key = value_of[len(PLUGIN_PREFIX) :].rpartition(".")
        if not plugin_id:
            return ""
        for plugin in config.plugins:
            if plugin.plugin == plugin_id:
                return _stringify(plugin.options.get(key, ""))
        logger.debug("No plugin '%s' configured for placeholder", plugin_id)
        return ""

    accessor = CONFIG_VALUES.get(value_of)
    if accessor is None:
        logger.debug("Unknown config value '%s' in placeholder", value_of)
        return ""
    return _stringify(accessor(config))


def _filter_files(files: list[str], options: dict[str, str]) -> str:
    of_type = options.get("of-type", "")
    in_dir = options.get("in-dir", "")
    if of_type:
        files = [f for f in files if f.lower().endswith("." + of_type.lstrip(".").lower())]
    if in_dir:
        prefix = in_dir.rstrip("/") + "/"
        files = [f for f in files if f.startswith(prefix)]
    return options.get("separated-by", " ").join(files)


def _resolve_config(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    return config_value(options.get("value-of", ""), config)


def _resolve_env(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    return os.environ.get(options.get("value-of", ""), options.get("default", ""))


def _resolve_arg(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    default = options.get("default", "")
    if ctx is None or not options.get("value-of"):
        return default
    return ctx.get_arg(options["value-of"], default)


def _resolve_branch(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    return ctx.branch if ctx is not None else ""


def _resolve_staged_files(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    return _filter_files(ctx.staged_files, options) if ctx is not None else ""


def _resolve_changed_files(options: dict[str, str], config: Configuration, ctx: ExecutionContext | None) -> str:
    return _filter_files(ctx.changed_files, options) if ctx is not None else ""


PLACEHOLDERS: dict[str, Callable[[dict[str, str], Configuration, ExecutionContext | None], str]] = {
    "CONFIG": _resolve_config,
    "ENV": _resolve_env,
    "ARG": _resolve_arg,
    "BRANCH": _resolve_branch,
    "STAGED_FILES": _resolve_staged_files,
    "CHANGED_FILES": _resolve_changed_files,
}


def resolve_placeholder(
    name: str,
    options: dict[str, str],
    config: Configuration,
    ctx: ExecutionContext | None = None,
) -> str:
    """Resolve a single placeholder.

    Args:
        name: Placeholder name (e.g. CONFIG)
        options: Placeholder options (e.g. {"value-of": "custom>>foo"})
        config: Loaded configuration
        ctx: Execution context, required for repository-backed placeholders

    Returns:
        Replacement string, empty for unknown placeholders
    """
    resolver = PLACEHOLDERS.get(name.upper())
    if resolver is None:
        logger.debug("Unknown placeholder '%s'", name)
        return ""
    return resolver(options, config, ctx)


def parse_options(raw: str) -> dict[str, str]:
    """Parse ``|key:value|key:value`` placeholder options."""
    options: dict[str, str] = {}
    for part in raw.split("|"):
        if not part:
            continue
        key, _, value = part.partition(":")
        options[key.strip()] = value
    return options


def format_command(template: str, config: Configuration, ctx: ExecutionContext | None = None) -> str:
    """Replace every placeholder in a command template."""

    def replace(match: re.Match[str]) -> str:
        return resolve_placeholder(match.group(1), parse_options(match.group(2)), config, ctx)

    return PLACEHOLDER_PATTERN.sub(replace, template)
