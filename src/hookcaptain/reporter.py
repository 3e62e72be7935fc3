"""Human-readable dump of a loaded configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from hookcaptain import hooks as hook_names
from hookcaptain.errors import ConfigLoadError

if TYPE_CHECKING:
    from hookcaptain.config import Action, Condition, Configuration, HookConfig
    from hookcaptain.repository import Repository

logger = logging.getLogger(__name__)


class ConfigReporter:
    """Renders hooks, actions, and settings of a configuration with rich.

    Attributes:
        config: Loaded configuration
        repository: Used to show whether hooks are installed (extensive mode)
        console: Output console
    """

    def __init__(
        self,
        config: Configuration,
        repository: Repository | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config
        self.repository = repository
        self.console = console or Console()

    def show(
        self,
        hooks: list[str] | None = None,
        *,
        actions: bool = False,
        conditions: bool = False,
        options: bool = False,
        config: bool = False,
        extensive: bool = False,
    ) -> None:
        """Print the configuration.

        Args:
            hooks: Limit output to these hooks, all hooks by default
            actions: List the actions of every hook
            conditions: List action conditions
            options: List action options
            config: Show the settings section
            extensive: Everything above plus install status of each hook

        Raises:
            ConfigLoadError: If no configuration file exists
            InvalidHookName: If a requested hook is unknown
        """
        if not self.config.file_exists:
            raise ConfigLoadError(f"No configuration found at {self.config.path}")

        if extensive:
            actions = conditions = options = config = True

        selected = hooks or hook_names.get_valid_hooks()
        for name in selected:
            hook_names.validate(name)

        if config:
            self.console.print(self._settings_panel())

        table = Table(show_header=True, show_lines=True)
        table.add_column("Hook", style="cyan", no_wrap=True)
        table.add_column("Enabled", width=8)
        if extensive:
            table.add_column("Installed", width=9)
        table.add_column("Actions", style="yellow")

        for name in selected:
            hook_config = self.config.get_hook_config(name)
            row = [name, self._flag(hook_config.enabled)]
            if extensive:
                row.append(self._installed(name))
            row.append(self._describe_actions(hook_config, actions, conditions, options))
            table.add_row(*row)

        self.console.print(Panel(table, title=f"[bold]{self.config.path}[/bold]", border_style="blue"))

    def _settings_panel(self) -> Panel:
        table = Table(show_header=False, show_lines=True)
        table.add_column("Key", style="white", width=20)
        table.add_column("Value", style="yellow")
        for key, value in self.config.to_document().get("config", {}).items():
            display = value if isinstance(value, str) else json.dumps(value)
            table.add_row(key, escape(display))
        table.add_row("git-directory", escape(self.config.git_directory))
        return Panel(table, title="[bold]Settings[/bold]", border_style="green")

    def _installed(self, hook: str) -> str:
        if self.repository is None or hook_names.is_virtual(hook):
            return "[dim]-[/dim]"
        return self._flag(self.repository.hook_exists(hook))

    @staticmethod
    def _flag(value: bool) -> str:
        return "[green]yes[/green]" if value else "[dim]no[/dim]"

    def _describe_actions(self, hook_config: HookConfig, actions: bool, conditions: bool, options: bool) -> str:
        if not hook_config.has_actions():
            return "[dim]none[/dim]"
        if not actions:
            return str(len(hook_config.actions))

        lines = []
        for action in hook_config.actions:
            lines.extend(self._describe_action(action, conditions, options))
        return "\n".join(lines)

    def _describe_action(self, action: Action, conditions: bool, options: bool) -> list[str]:
        marker = " [dim](included)[/dim]" if action.included else ""
        lines = [f"• {escape(action.label)}{marker}"]
        if action.label != action.action:
            lines.append(f"    {escape(action.action)}")
        if options and action.options:
            for key, value in action.options.items():
                lines.append(f"    [dim]{escape(str(key))}:[/dim] {escape(str(value))}")
        if conditions:
            for condition in action.conditions:
                lines.extend(self._describe_condition(condition, depth=2))
        return lines

    def _describe_condition(self, condition: Condition, depth: int) -> list[str]:
        indent = "  " * depth
        if condition.is_composite:
            lines = [f"{indent}[magenta]{condition.exec.upper()}[/magenta]"]
            for child in condition.conditions:
                lines.extend(self._describe_condition(child, depth + 1))
            return lines
        args = f" {escape(json.dumps(condition.args))}" if condition.args else ""
        return [f"{indent}[magenta]?[/magenta] {escape(condition.exec)}{args}"]
