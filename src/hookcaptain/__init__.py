"""hookcaptain - configurable git hook manager.

Example:
    from hookcaptain import load_configuration

    config = load_configuration("hookcaptain.json")
    if config.is_hook_enabled("post-merge"):
        for action in config.get_executable_hook_config("post-merge").actions:
            print(action.label)
"""

from hookcaptain.conditions import condition, evaluate
from hookcaptain.config import Action, Condition, Configuration, HookConfig
from hookcaptain.errors import (
    ConfigLoadError,
    HookCaptainError,
    InvalidHookName,
    UnresolvedCondition,
)
from hookcaptain.loader import load_configuration, serialize_document
from hookcaptain.placeholders import format_command, resolve_placeholder
from hookcaptain.runner import HookResult, HookRunner

__all__ = [
    "Action",
    "Condition",
    "ConfigLoadError",
    "Configuration",
    "HookCaptainError",
    "HookConfig",
    "HookResult",
    "HookRunner",
    "InvalidHookName",
    "UnresolvedCondition",
    "condition",
    "evaluate",
    "format_command",
    "load_configuration",
    "resolve_placeholder",
    "serialize_document",
]
