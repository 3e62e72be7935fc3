"""hookcaptain command line interface."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Literal

import attrs
import tyro
from rich import print
from rich.console import Console
from rich.markup import escape

from hookcaptain.config import BOOTSTRAP, GIT_DIRECTORY, VERBOSITY, Configuration, Verbosity
from hookcaptain.errors import HookCaptainError
from hookcaptain.loader import load_configuration, serialize_document, write_configuration
from hookcaptain.reporter import ConfigReporter
from hookcaptain.repository import GitRepository
from hookcaptain.runner import ActionStatus, HookResult, HookRunner

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
}


# Subcommand definitions using attrs
@attrs.define
class Hook:
    """Run the actions configured for a git hook."""

    name: Annotated[str, tyro.conf.Positional]
    """Hook name, e.g. pre-commit"""

    args: Annotated[list[str], tyro.conf.Positional] = attrs.Factory(list)
    """Arguments git passed to the hook"""


@attrs.define
class Info:
    """Show hooks and actions of the configuration."""

    hooks: Annotated[list[str], tyro.conf.Positional] = attrs.Factory(list)
    """Limit output to these hooks"""

    actions: Annotated[bool, tyro.conf.arg(aliases=["-a"])] = False
    """List actions"""

    conditions: Annotated[bool, tyro.conf.arg(aliases=["-p"])] = False
    """List action conditions"""

    options: Annotated[bool, tyro.conf.arg(aliases=["-o"])] = False
    """List action options"""

    config: Annotated[bool, tyro.conf.arg(aliases=["-c"])] = False
    """Show settings"""

    extensive: Annotated[bool, tyro.conf.arg(aliases=["-e"])] = False
    """Show everything, including hook install status"""


@attrs.define
class Export:
    """Export the merged configuration with all includes resolved."""

    output: Annotated[Path | None, tyro.conf.arg(aliases=["-o"])] = None
    """Output file, stdout if omitted"""

    format: Literal["json", "yaml"] = "json"
    """Output format when writing to stdout"""


# Type alias for all subcommands
Command = (
    Annotated[Hook, tyro.conf.subcommand(name="hook")]
    | Annotated[Info, tyro.conf.subcommand(name="info")]
    | Annotated[Export, tyro.conf.subcommand(name="export")]
)


def setup_logging(verbosity: str = "normal") -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=LOG_LEVELS.get(verbosity, logging.INFO),
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def open_repository(config: Configuration) -> GitRepository:
    return GitRepository(config.git_directory, git_binary=config.run.git_path)


def run_hook(config: Configuration, cmd: Hook, console: Console) -> None:
    """Run a hook and exit non-zero if a disallowed failure occurred."""
    repository = open_repository(config)
    result = HookRunner(config, repository).run(cmd.name, cmd.args)
    if result.skipped:
        return

    print_hook_result(result, console, quiet=config.verbosity == "quiet")
    if not result.success:
        sys.exit(1)


def print_hook_result(result: HookResult, console: Console, quiet: bool = False) -> None:
    if not quiet:
        console.print(f"[bold]{result.hook}[/bold]")

    for action_result in result.results:
        label = escape(action_result.action.label)
        if action_result.status == ActionStatus.SUCCEEDED:
            if not quiet:
                console.print(f"  [green]✓[/green] {label}")
        elif action_result.status == ActionStatus.SKIPPED:
            if not quiet:
                console.print(f"  [dim]- {label} (skipped)[/dim]")
        elif action_result.failure_allowed:
            console.print(f"  [yellow]![/yellow] {label} [dim](failure allowed)[/dim]")
        else:
            console.print(f"  [red]✗[/red] {label}")

        if action_result.status == ActionStatus.FAILED and action_result.output:
            for line in action_result.output.splitlines():
                console.print(f"    {line}", markup=False, highlight=False)


def export_config(config: Configuration, cmd: Export) -> None:
    if cmd.output is not None:
        write_configuration(config, cmd.output)
        print(f"[green]Written to:[/green] {cmd.output}")
    else:
        sys.stdout.write(serialize_document(config, cmd.format))


def main(
    cmd: Annotated[Command, tyro.conf.arg(name="")],
    *,
    configuration: Annotated[Path | None, tyro.conf.arg(aliases=["-c"], help="Configuration file")] = None,
    git_directory: Annotated[str | None, tyro.conf.arg(help="Path to the .git directory")] = None,
    bootstrap: Annotated[str | None, tyro.conf.arg(help="Bootstrap file")] = None,
    verbosity: Annotated[Verbosity | None, tyro.conf.arg(help="Output verbosity")] = None,
    no_color: bool = False,
) -> None:
    """hookcaptain - git hook manager.

    Runs conditional actions for git hooks based on a JSON or YAML
    configuration document that may include other documents.
    """
    setup_logging(verbosity or "normal")

    overrides: dict[str, Any] = {}
    if git_directory is not None:
        overrides[GIT_DIRECTORY] = git_directory
    if bootstrap is not None:
        overrides[BOOTSTRAP] = bootstrap
    if verbosity is not None:
        overrides[VERBOSITY] = verbosity

    console = Console(no_color=no_color)
    try:
        config = load_configuration(configuration, overrides)
        logging.getLogger().setLevel(LOG_LEVELS[config.verbosity])
        if not config.use_colors:
            console = Console(no_color=True)

        # Handle each command type
        if isinstance(cmd, Hook):
            run_hook(config, cmd, console)

        elif isinstance(cmd, Info):
            reporter = ConfigReporter(config, open_repository(config), console)
            reporter.show(
                cmd.hooks or None,
                actions=cmd.actions,
                conditions=cmd.conditions,
                options=cmd.options,
                config=cmd.config,
                extensive=cmd.extensive,
            )

        elif isinstance(cmd, Export):
            export_config(config, cmd)

    except HookCaptainError as e:
        print(f"[red]Error:[/red] {escape(str(e))}", file=sys.stderr)
        sys.exit(1)


def entry_point() -> None:
    """Entry point for the hookcaptain command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
