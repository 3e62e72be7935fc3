"""Condition registry and decorator.

Maps condition identifiers used in configuration documents to the callables
implementing them. Configuration objects only hold the identifier and its
args; the callable is looked up when the condition is evaluated.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from hookcaptain.errors import UnresolvedCondition

if TYPE_CHECKING:
    from hookcaptain.context import ExecutionContext

logger = logging.getLogger(__name__)

ConditionFn = Callable[..., bool]
"""Called as fn(ctx, *args) for list args or fn(ctx, **args) for mapping args"""


class ConditionRegistry:
    """Registry of named condition implementations."""

    def __init__(self) -> None:
        self._conditions: dict[str, ConditionFn] = {}

    def register(self, name: str, fn: ConditionFn) -> None:
        """Register a condition under a name, replacing any previous one."""
        self._conditions[name] = fn

    def get(self, name: str) -> ConditionFn | None:
        return self._conditions.get(name)

    def names(self) -> list[str]:
        return sorted(self._conditions)

    def resolve(self, identifier: str) -> ConditionFn:
        """Return the callable for a condition identifier.

        Registered names are checked first. Otherwise the identifier is treated
        as an import path, either ``package.module:function`` or
        ``package.module.function``.

        Raises:
            UnresolvedCondition: If nothing matches the identifier
        """
        fn = self._conditions.get(identifier)
        if fn is not None:
            return fn

        if ":" in identifier:
            module_path, _, attr = identifier.partition(":")
        elif "." in identifier:
            module_path, _, attr = identifier.rpartition(".")
        else:
            raise UnresolvedCondition(identifier)

        try:
            module = importlib.import_module(module_path)
            fn = getattr(module, attr)
        except (ImportError, AttributeError, ValueError) as e:
            logger.debug("Condition %s is not importable: %s", identifier, e)
            raise UnresolvedCondition(identifier) from e

        if not callable(fn):
            raise UnresolvedCondition(identifier)
        return fn

    def clear(self) -> None:
        """Remove all registered conditions (for testing)."""
        self._conditions.clear()

    def copy(self) -> ConditionRegistry:
        registry = ConditionRegistry()
        registry._conditions = dict(self._conditions)
        return registry


# Global registry
_registry = ConditionRegistry()


def get_registry() -> ConditionRegistry:
    """Get the global condition registry."""
    return _registry


def condition(name: str) -> Callable[[ConditionFn], ConditionFn]:
    """Decorator registering a function as a named condition.

    Example:
        @condition("branch.on")
        def on_branch(ctx: ExecutionContext, name: str) -> bool:
            return ctx.branch == name
    """

    def decorator(fn: ConditionFn) -> ConditionFn:
        _registry.register(name, fn)
        fn._condition_name = name  # type: ignore[attr-defined]
        return fn

    return decorator


def call_condition(fn: ConditionFn, ctx: ExecutionContext, args: list[Any] | dict[str, Any]) -> bool:
    """Invoke a condition with list args as positional and mapping args as keyword arguments."""
    if isinstance(args, dict):
        return bool(fn(ctx, **args))
    return bool(fn(ctx, *args))
