"""Tests for the configuration reporter."""

import io
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from hookcaptain.config import Action, Condition, Configuration, HookConfig, Settings
from hookcaptain.errors import ConfigLoadError, InvalidHookName
from hookcaptain.reporter import ConfigReporter


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200, file=io.StringIO())


@pytest.fixture
def config(tmp_path: Path) -> Configuration:
    return Configuration(
        path=tmp_path / "hookcaptain.json",
        file_exists=True,
        settings=Settings(verbosity="verbose"),
        hooks={
            "pre-commit": HookConfig(
                name="pre-commit",
                enabled=True,
                actions=(
                    Action(
                        action="vendor/bin/phpcs src",
                        label="Code style",
                        options={"standard": "PSR12"},
                        conditions=(
                            Condition(
                                exec="OR",
                                conditions=(
                                    Condition(exec="branch.on", args=["main"]),
                                    Condition(exec="file-staged.of-type", args=["php"]),
                                ),
                            ),
                        ),
                    ),
                    Action(action="composer validate", included=True),
                ),
            ),
        },
    )


class TestConfigReporter:
    """Test rendering configurations."""

    def test_missing_configuration(self, tmp_path: Path, console: Console) -> None:
        reporter = ConfigReporter(Configuration(path=tmp_path / "hookcaptain.json"), console=console)

        with pytest.raises(ConfigLoadError, match="No configuration found"):
            reporter.show()

    def test_lists_all_hooks(self, config: Configuration, console: Console) -> None:
        ConfigReporter(config, console=console).show()
        output = console.export_text()

        assert "pre-commit" in output
        assert "post-change" in output
        assert "Code style" not in output

    def test_actions(self, config: Configuration, console: Console) -> None:
        ConfigReporter(config, console=console).show(["pre-commit"], actions=True)
        output = console.export_text()

        assert "Code style" in output
        assert "vendor/bin/phpcs src" in output
        assert "composer validate (included)" in output
        assert "pre-push" not in output
        assert "branch.on" not in output

    def test_conditions_and_options(self, config: Configuration, console: Console) -> None:
        ConfigReporter(config, console=console).show(["pre-commit"], actions=True, conditions=True, options=True)
        output = console.export_text()

        assert "OR" in output
        assert 'branch.on ["main"]' in output
        assert "standard: PSR12" in output

    def test_extensive(self, config: Configuration, console: Console, make_repository: Any) -> None:
        repository = make_repository(installed=("pre-commit",))

        ConfigReporter(config, repository, console).show(["pre-commit"], extensive=True)
        output = console.export_text()

        assert "Installed" in output
        assert "Settings" in output
        assert "verbosity" in output
        assert "git-directory" in output
        assert "yes" in output

    def test_git_directory_is_not_markup(self, config: Configuration, console: Console) -> None:
        config = config.model_copy(update={"settings": Settings(git_directory="/srv/[bold]repo[/bold]/.git")})

        ConfigReporter(config, console=console).show(["pre-commit"], config=True)

        assert "/srv/[bold]repo[/bold]/.git" in console.export_text()

    def test_unknown_hook(self, config: Configuration, console: Console) -> None:
        with pytest.raises(InvalidHookName):
            ConfigReporter(config, console=console).show(["pre-lunch"])
