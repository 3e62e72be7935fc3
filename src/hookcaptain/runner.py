"""Hook runner.

Processes one triggered hook in a single linear pass over its executable
actions. For every action the conditions are evaluated first, then the
command placeholders are resolved, then the action is executed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from hookcaptain.bootstrap import handle_bootstrap
from hookcaptain.conditions import evaluate_all
from hookcaptain.context import ExecutionContext
from hookcaptain.errors import UnresolvedCondition
from hookcaptain.executor import ActionExecutor, DefaultExecutor
from hookcaptain.placeholders import format_command
from hookcaptain.plugins import HookPlugin, load_plugins

if TYPE_CHECKING:
    from hookcaptain.conditions import ConditionRegistry
    from hookcaptain.config import Action, Configuration
    from hookcaptain.repository import Repository

logger = logging.getLogger(__name__)


class ActionStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ActionResult:
    """Outcome of one action within a hook run.

    Attributes:
        action: The configured action
        status: Succeeded, failed, or skipped by its conditions
        command: Command after placeholder substitution (empty when skipped)
        output: Captured output or error message
        failure_allowed: Whether a failure of this action is tolerated
    """

    action: Action
    status: ActionStatus
    command: str = ""
    output: str = ""
    failure_allowed: bool = False

    @property
    def is_fatal(self) -> bool:
        return self.status == ActionStatus.FAILED and not self.failure_allowed


@dataclass
class HookResult:
    """Outcome of a hook run."""

    hook: str
    skipped: bool = False
    results: list[ActionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not any(r.is_fatal for r in self.results)

    @property
    def failed(self) -> list[ActionResult]:
        return [r for r in self.results if r.status == ActionStatus.FAILED]


class HookRunner:
    """Runs the actions configured for a git hook.

    Attributes:
        config: Loaded configuration
        repository: Repository inspector handed to conditions and placeholders
        executor: Executes a single action
        registry: Condition registry, defaults to the global one
    """

    def __init__(
        self,
        config: Configuration,
        repository: Repository,
        executor: ActionExecutor | None = None,
        registry: ConditionRegistry | None = None,
    ) -> None:
        self.config = config
        self.repository = repository
        self.executor = executor or DefaultExecutor()
        self.registry = registry

    def run(self, hook: str, args: list[str] | None = None) -> HookResult:
        """Run a hook.

        Args:
            hook: Name of the triggered git hook
            args: Arguments git passed to the hook

        Returns:
            HookResult; ``skipped`` is set when neither the hook nor its virtual hook is enabled

        Raises:
            InvalidHookName: If the hook name is unknown
            BootstrapError: If the bootstrap file cannot be loaded
            PluginLoadError: If a configured plugin cannot be loaded
        """
        hook_config = self.config.get_executable_hook_config(hook)
        result = HookResult(hook=hook)

        if not self.config.is_hook_enabled(hook):
            logger.debug("Hook %s is disabled, skipping", hook)
            result.skipped = True
            return result

        handle_bootstrap(self.config)
        plugins = load_plugins(self.config)
        ctx = ExecutionContext(config=self.config, hook=hook, repository=self.repository, args=list(args or []))

        for plugin in plugins:
            plugin.before_hook(ctx, hook_config)

        if not hook_config.has_actions():
            logger.info("No actions configured for %s", hook)

        for action in hook_config.actions:
            action_result = self._run_action(ctx, action, plugins)
            result.results.append(action_result)
            if action_result.is_fatal and self.config.fail_on_first_error:
                logger.debug("Stopping %s after failed action '%s'", hook, action.label)
                break

        for plugin in plugins:
            plugin.after_hook(ctx, result)
        return result

    def _run_action(self, ctx: ExecutionContext, action: Action, plugins: list[HookPlugin]) -> ActionResult:
        failure_allowed = action.is_failure_allowed(self.config.is_failure_allowed())

        try:
            applies = evaluate_all(action.conditions, ctx, self.registry)
        except UnresolvedCondition as e:
            logger.error("Action '%s': %s", action.label, e)
            return ActionResult(action=action, status=ActionStatus.FAILED, output=str(e))
        except Exception as e:
            logger.debug("Condition check of '%s' raised", action.label, exc_info=True)
            return self._failed(action, f"Condition check failed: {e}", failure_allowed)

        if not applies:
            logger.debug("Action '%s' skipped by its conditions", action.label)
            return ActionResult(action=action, status=ActionStatus.SKIPPED)

        for plugin in plugins:
            plugin.before_action(ctx, action)

        command = format_command(action.action, self.config, ctx)
        logger.debug("Executing action '%s'", action.label)
        outcome = self.executor.execute(ctx, action, command)

        if outcome.success:
            action_result = ActionResult(
                action=action,
                status=ActionStatus.SUCCEEDED,
                command=command,
                output=outcome.output,
                failure_allowed=failure_allowed,
            )
        else:
            action_result = self._failed(action, outcome.output, failure_allowed, command)

        for plugin in plugins:
            plugin.after_action(ctx, action, action_result)
        return action_result

    def _failed(self, action: Action, output: str, failure_allowed: bool, command: str = "") -> ActionResult:
        if failure_allowed:
            logger.warning("Action '%s' failed (allowed): %s", action.label, output)
        else:
            logger.error("Action '%s' failed: %s", action.label, output)
        return ActionResult(
            action=action,
            status=ActionStatus.FAILED,
            command=command,
            output=output,
            failure_allowed=failure_allowed,
        )
