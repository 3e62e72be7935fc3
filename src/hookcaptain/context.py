"""Execution context handed to conditions, actions, and placeholders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from hookcaptain import hooks as hook_names

if TYPE_CHECKING:
    from hookcaptain.config import Configuration
    from hookcaptain.repository import Repository


@dataclass
class ExecutionContext:
    """Facts available while a hook is being processed.

    Attributes:
        config: Loaded configuration
        hook: Name of the triggered hook
        repository: Repository inspector
        args: Positional arguments git passed to the hook
        extra: Free-form values shared between actions of one run
    """

    config: Configuration
    hook: str
    repository: Repository
    args: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def get_arg(self, key: str | int, default: str = "") -> str:
        """Look up a hook argument by position or by its git name (e.g. 'file').

        Args:
            key: Index or argument name from hooks.HOOK_ARGUMENTS
            default: Returned when the argument is missing
        """
        if isinstance(key, str) and not key.isdigit():
            names = hook_names.argument_names(self.hook)
            if key not in names:
                return default
            index = names.index(key)
        else:
            index = int(key)
        if 0 <= index < len(self.args):
            return self.args[index]
        return default

    @property
    def branch(self) -> str:
        if "branch" not in self.extra:
            self.extra["branch"] = self.repository.current_branch()
        return self.extra["branch"]

    @property
    def staged_files(self) -> list[str]:
        if "staged_files" not in self.extra:
            self.extra["staged_files"] = self.repository.staged_files()
        return self.extra["staged_files"]

    @property
    def changed_files(self) -> list[str]:
        """Files changed by the operation that triggered the hook.

        post-checkout passes the previous and new head; other hooks compare
        ORIG_HEAD with HEAD.
        """
        if "changed_files" not in self.extra:
            if self.hook == hook_names.POST_CHECKOUT and len(self.args) >= 2:
                files = self.repository.changed_files(self.args[0], self.args[1])
            else:
                files = self.repository.changed_files()
            self.extra["changed_files"] = files
        return self.extra["changed_files"]
