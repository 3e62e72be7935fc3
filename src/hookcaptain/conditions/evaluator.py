"""Boolean evaluation of condition trees.

Formal Model:
    AND(c1..cn) = c1 and ... and cn    (empty -> True)
    OR(c1..cn)  = c1 or ... or cn      (empty -> False)

Children are evaluated in declared order and evaluation stops at the first
child that decides the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from hookcaptain.conditions.registry import ConditionRegistry, call_condition, get_registry

if TYPE_CHECKING:
    from hookcaptain.config import Condition
    from hookcaptain.context import ExecutionContext

logger = logging.getLogger(__name__)


def evaluate(condition: Condition, ctx: ExecutionContext, registry: ConditionRegistry | None = None) -> bool:
    """Evaluate a condition tree.

    Args:
        condition: Leaf or AND/OR condition
        ctx: Execution context handed to leaf conditions
        registry: Registry to resolve leaf identifiers, defaults to the global one

    Returns:
        Result of the condition

    Raises:
        UnresolvedCondition: If a leaf identifier cannot be resolved
    """
    registry = registry or get_registry()
    operator = condition.exec.upper()

    if operator == "AND":
        for child in condition.conditions:
            if not evaluate(child, ctx, registry):
                return False
        return True

    if operator == "OR":
        for child in condition.conditions:
            if evaluate(child, ctx, registry):
                return True
        return False

    fn = registry.resolve(condition.exec)
    result = call_condition(fn, ctx, condition.args)
    logger.debug("Condition %s%s -> %s", condition.exec, condition.args or "", result)
    return result


def evaluate_all(
    conditions: Iterable[Condition], ctx: ExecutionContext, registry: ConditionRegistry | None = None
) -> bool:
    """Evaluate an action's condition list as an implicit AND."""
    return all(evaluate(c, ctx, registry) for c in conditions)
