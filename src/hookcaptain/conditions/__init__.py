"""Conditions guarding hook actions.

Leaf conditions are looked up by identifier in a registry; ``AND`` and ``OR``
combine nested conditions into an expression tree.
"""

from hookcaptain.conditions import builtin  # noqa: F401  (registers built-in conditions)
from hookcaptain.conditions.evaluator import evaluate, evaluate_all
from hookcaptain.conditions.registry import ConditionRegistry, condition, get_registry

__all__ = [
    "ConditionRegistry",
    "condition",
    "evaluate",
    "evaluate_all",
    "get_registry",
]
