"""Tests for running hooks."""

import logging
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from hookcaptain.config import Action, Condition, Configuration, HookConfig, PluginConfig, Settings
from hookcaptain.errors import BootstrapError, InvalidHookName, PluginLoadError
from hookcaptain.executor import ActionOutcome
from hookcaptain.plugins import HookPlugin
from hookcaptain.runner import ActionStatus, HookRunner

FAILING = "exit 1"


class RecordingPlugin(HookPlugin):
    """Records callback invocations in a class-level list."""

    events: list[str] = []

    def before_hook(self, ctx, hook_config):
        self.events.append(f"before_hook:{ctx.hook}:{self.options.get('tag', '')}")

    def before_action(self, ctx, action):
        self.events.append(f"before_action:{action.label}")

    def after_action(self, ctx, action, result):
        self.events.append(f"after_action:{action.label}:{result.status.value}")

    def after_hook(self, ctx, result):
        self.events.append(f"after_hook:{result.success}")


@pytest.fixture(autouse=True)
def reset_plugin_events():
    """Clean up recorded plugin events between tests."""
    yield
    RecordingPlugin.events.clear()


@pytest.fixture
def executor() -> MagicMock:
    """Executor failing every action whose command is 'exit 1'."""
    executor = MagicMock()
    executor.execute.side_effect = lambda ctx, action, command: ActionOutcome(
        success=command != FAILING, output="boom" if command == FAILING else "ok"
    )
    return executor


def make_config(tmp_path: Path, *actions: Action, hook: str = "pre-commit", enabled: bool = True, **settings: Any):
    return Configuration(
        path=tmp_path / "hookcaptain.json",
        file_exists=True,
        settings=Settings(**settings),
        hooks={hook: HookConfig(name=hook, enabled=enabled, actions=actions)},
    )


def executed(executor: MagicMock) -> list[str]:
    return [call.args[2] for call in executor.execute.call_args_list]


class TestHookRunner:
    """Test the action loop."""

    def test_disabled_hook_is_skipped(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo hi"), enabled=False)

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert result.skipped
        assert result.success
        executor.execute.assert_not_called()

    def test_invalid_hook(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        with pytest.raises(InvalidHookName):
            HookRunner(make_config(tmp_path), repository, executor).run("pre-lunch")

    def test_actions_run_in_order_with_placeholders(
        self, tmp_path: Path, repository: Any, executor: MagicMock
    ) -> None:
        config = make_config(tmp_path, Action(action="echo {$BRANCH}"), Action(action="lint {$STAGED_FILES|of-type:py}"))

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert result.success
        assert executed(executor) == ["echo main", "lint src/app.py src/util.py"]
        assert [r.status for r in result.results] == [ActionStatus.SUCCEEDED, ActionStatus.SUCCEEDED]

    def test_hook_arguments_reach_actions(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="check {$ARG|value-of:file}"), hook="commit-msg")

        HookRunner(config, repository, executor).run("commit-msg", [".git/COMMIT_EDITMSG"])

        assert executed(executor) == ["check .git/COMMIT_EDITMSG"]

    def test_conditions_skip_action(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(
            tmp_path,
            Action(action="deploy", conditions=(Condition(exec="branch.on", args=["production"]),)),
            Action(action="echo done"),
        )

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert executed(executor) == ["echo done"]
        assert result.results[0].status == ActionStatus.SKIPPED
        assert result.success

    def test_virtual_hook_actions_run(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="composer install"), hook="post-change")

        result = HookRunner(config, repository, executor).run("post-merge")

        assert not result.skipped
        assert executed(executor) == ["composer install"]


class TestFailurePolicy:
    """Test fail-on-first-error and failureAllowed."""

    def test_stops_on_first_error(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo 1"), Action(action=FAILING), Action(action="echo 3"))

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert not result.success
        assert executed(executor) == ["echo 1", FAILING]
        assert result.failed[0].output == "boom"

    def test_continues_when_configured(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(
            tmp_path, Action(action=FAILING), Action(action="echo 2"), fail_on_first_error=False
        )

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert not result.success
        assert executed(executor) == [FAILING, "echo 2"]

    def test_allowed_failure_continues(
        self, tmp_path: Path, repository: Any, executor: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = make_config(tmp_path, Action(action=FAILING, failure_allowed=True), Action(action="echo 2"))

        with caplog.at_level(logging.WARNING):
            result = HookRunner(config, repository, executor).run("pre-commit")

        assert result.success
        assert executed(executor) == [FAILING, "echo 2"]
        assert result.results[0].failure_allowed
        assert "failed (allowed)" in caplog.text

    def test_global_allow_failure(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action=FAILING), allow_failure=True)

        assert HookRunner(config, repository, executor).run("pre-commit").success

    def test_action_setting_overrides_global(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action=FAILING, failure_allowed=False), allow_failure=True)

        assert not HookRunner(config, repository, executor).run("pre-commit").success

    def test_unresolved_condition_fails_allowed_action(
        self, tmp_path: Path, repository: Any, executor: MagicMock
    ) -> None:
        config = make_config(
            tmp_path,
            Action(action="echo 1", failure_allowed=True, conditions=(Condition(exec="no.such-condition"),)),
            Action(action="echo 2"),
        )

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert not result.success
        assert "Unknown condition" in result.results[0].output
        executor.execute.assert_not_called()

    def test_condition_error_is_action_failure(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        repository.current_branch = MagicMock(side_effect=RuntimeError("not a git repository"))
        config = make_config(
            tmp_path,
            Action(action="echo 1", conditions=(Condition(exec="branch.on", args=["main"]),)),
        )

        result = HookRunner(config, repository, executor).run("pre-commit")

        assert not result.success
        assert "not a git repository" in result.results[0].output


class TestPluginsAndBootstrap:
    """Test plugin callbacks and bootstrap loading during a run."""

    def test_plugin_callbacks(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo 1", label="first")).model_copy(
            update={"plugins": (PluginConfig(plugin=f"{__name__}:RecordingPlugin", options={"tag": "x"}),)}
        )

        HookRunner(config, repository, executor).run("pre-commit")

        assert RecordingPlugin.events == [
            "before_hook:pre-commit:x",
            "before_action:first",
            "after_action:first:succeeded",
            "after_hook:True",
        ]

    def test_unknown_plugin(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo 1")).model_copy(
            update={"plugins": (PluginConfig(plugin="no_such_package.Plugin"),)}
        )

        with pytest.raises(PluginLoadError):
            HookRunner(config, repository, executor).run("pre-commit")

    def test_plugin_must_subclass_hook_plugin(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo 1")).model_copy(
            update={"plugins": (PluginConfig(plugin="pathlib:Path"),)}
        )

        with pytest.raises(PluginLoadError, match="HookPlugin"):
            HookRunner(config, repository, executor).run("pre-commit")

    def test_bootstrap_runs_before_actions(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        marker = tmp_path / "bootstrapped"
        (tmp_path / "bootstrap.py").write_text(f"open({str(marker)!r}, 'w').close()\n")
        config = make_config(tmp_path, Action(action="echo 1"), bootstrap="bootstrap.py")

        HookRunner(config, repository, executor).run("pre-commit")

        assert marker.exists()

    def test_missing_bootstrap(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        config = make_config(tmp_path, Action(action="echo 1"), bootstrap="missing.py")

        with pytest.raises(BootstrapError, match="not found"):
            HookRunner(config, repository, executor).run("pre-commit")
        executor.execute.assert_not_called()

    def test_failing_bootstrap(self, tmp_path: Path, repository: Any, executor: MagicMock) -> None:
        (tmp_path / "bootstrap.py").write_text("raise RuntimeError('broken')\n")
        config = make_config(tmp_path, Action(action="echo 1"), bootstrap="bootstrap.py")

        with pytest.raises(BootstrapError, match="broken"):
            HookRunner(config, repository, executor).run("pre-commit")
