"""Action execution.

An action identifier is either an import path of a Python callable
(``package.module:function``) or a shell command. A top-level module name
such as ``make:lint`` runs through the shell unless a module named ``make``
can be found. Python callables are called as ``fn(ctx, options)``; returning
``False`` or raising marks the action as failed, a returned string is reported
as output. Shell commands run through the system shell and fail on a non-zero
exit code.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import re
import subprocess
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from hookcaptain.errors import ActionFailed

if TYPE_CHECKING:
    from hookcaptain.config import Action
    from hookcaptain.context import ExecutionContext

logger = logging.getLogger(__name__)

PYTHON_ACTION_PATTERN = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$")


@dataclass
class ActionOutcome:
    """Result of running one action."""

    success: bool
    output: str = ""


class ActionExecutor(Protocol):
    def execute(self, ctx: ExecutionContext, action: Action, command: str) -> ActionOutcome: ...


def is_python_action(identifier: str) -> bool:
    if PYTHON_ACTION_PATTERN.match(identifier) is None:
        return False
    module_path = identifier.partition(":")[0]
    if "." in module_path:
        return True
    try:
        return importlib.util.find_spec(module_path) is not None
    except ValueError:
        return module_path in sys.modules


class DefaultExecutor:
    """Runs Python callables in-process and everything else through the shell."""

    def execute(self, ctx: ExecutionContext, action: Action, command: str) -> ActionOutcome:
        """Execute an action.

        Args:
            ctx: Execution context
            action: Configured action
            command: Action identifier with placeholders already resolved

        Returns:
            ActionOutcome with success flag and captured output
        """
        if is_python_action(action.action):
            return self._execute_python(ctx, action)
        return self._execute_shell(ctx, command)

    def _execute_python(self, ctx: ExecutionContext, action: Action) -> ActionOutcome:
        module_path, _, attr = action.action.partition(":")
        try:
            module = importlib.import_module(module_path)
            fn = getattr(module, attr)
        except (ImportError, AttributeError) as e:
            return ActionOutcome(success=False, output=f"Unable to load action {action.action}: {e}")

        try:
            result = fn(ctx, dict(action.options))
        except ActionFailed as e:
            return ActionOutcome(success=False, output=str(e))
        except Exception as e:
            logger.debug("Action %s raised", action.action, exc_info=True)
            return ActionOutcome(success=False, output=f"{type(e).__name__}: {e}")

        if result is False:
            return ActionOutcome(success=False)
        return ActionOutcome(success=True, output=result if isinstance(result, str) else "")

    def _execute_shell(self, ctx: ExecutionContext, command: str) -> ActionOutcome:
        env = {**os.environ, "HOOKCAPTAIN_HOOK": ctx.hook}
        logger.debug("Running command: %s", command)
        try:
            result = subprocess.run(  # noqa: S602
                command,
                shell=True,
                capture_output=True,
                text=True,
                env=env,
            )
        except OSError as e:
            return ActionOutcome(success=False, output=str(e))

        output = "\n".join(part.strip() for part in (result.stdout, result.stderr) if part.strip())
        return ActionOutcome(success=result.returncode == 0, output=output)
